import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    query_params: dict[str, list]
    body: bytes
    version: str
    _payload: dict[str, Any] | None = field(init=False, repr=False, default=None)

    def __post_init__(self):
        try:
            payload = json.loads(self.body) if self.body else None
        except ValueError:
            payload = None
        self._payload = payload if isinstance(payload, dict) else None

    @property
    def is_json(self) -> bool:
        """True when the body parsed as a JSON object."""
        return self._payload is not None

    def get(self, field: str, default: Any = None) -> Any:
        """
        Look up field in the JSON body. The query string is never consulted.
        """
        if not field:
            raise ValueError("Field cannot be empty")

        if self._payload is not None and field in self._payload:
            return self._payload[field]

        return default
