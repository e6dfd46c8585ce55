"""
Tests for Query, Response and Result.
"""

import pytest

from bucketrpc.models import ErrorKind, Query, Response, Result


class TestQuery:
    """Tests for Query JSON decoding."""

    def test_from_json(self):
        """Test decoding base64 fields."""
        query = Query.from_json({"bucket": ["YQ==", "Yg=="], "key": "aw==", "value": "dg=="})

        assert query == Query([b"a", b"b"], b"k", b"v")

    def test_defaults(self):
        """Test that omitted fields take their defaults."""
        query = Query.from_json({})

        assert query.bucket == []
        assert query.key == b""
        assert query.value is None

    def test_to_json(self):
        """Test encoding a query with no value."""
        payload = Query([b"\x00\xff"], b"k").to_json()

        assert payload == {"bucket": ["AP8="], "key": "aw==", "value": None}

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"bucket": "YQ=="},
            {"bucket": [1]},
            {"key": "not base64!"},
            {"value": 12},
        ],
    )
    def test_malformed(self, payload):
        """Test that malformed payloads raise ValueError."""
        with pytest.raises(ValueError):
            Query.from_json(payload)


class TestResponse:
    """Tests for Response JSON encoding."""

    def test_to_json(self):
        """Test encoding a successful read."""
        assert Response(value=b"v").to_json() == {"value": "dg==", "error": ""}

    def test_from_json(self):
        """Test decoding an error reply."""
        response = Response.from_json({"value": None, "error": "Key not Found"})

        assert response.value is None
        assert response.error == "Key not Found"


class TestResult:
    """Tests for Result."""

    def test_ok(self):
        """Test that a successful result has no error."""
        result = Result.ok(b"v")

        assert result.is_ok
        assert result.to_response() == Response(value=b"v", error="")

    def test_failure_drops_value(self):
        """Test that a failed result never carries a value on the wire."""
        result = Result(value=b"v", error=ErrorKind.KEY_NOT_FOUND, message="Key not Found")

        assert not result.is_ok
        assert result.to_response() == Response(value=None, error="Key not Found")

    def test_failure_without_message(self):
        """Test that a failure always has a non-empty error string."""
        response = Result.failure(ErrorKind.ENGINE_ERROR, "").to_response()

        assert response.error == "engine_error"
