from bucketrpc.service.resolver import NOT_FOUND, Found, NotFound, resolve
from bucketrpc.service.service import Service

__all__ = ["NOT_FOUND", "Found", "NotFound", "Service", "resolve"]
