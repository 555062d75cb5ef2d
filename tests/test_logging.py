"""
Tests for the JSON log formatter.
"""

import json
import logging

from matlynx.logging import JsonFormatter


def test_json_formatter_includes_extra():
    record = logging.LogRecord("matlynx.auth", logging.INFO, __file__, 1, "User logged in", None, None)
    record.email = "ravi@example.com"

    data = json.loads(JsonFormatter().format(record))

    assert data["level"] == "INFO"
    assert data["logger"] == "matlynx.auth"
    assert data["message"] == "User logged in"
    assert data["email"] == "ravi@example.com"
    assert "args" not in data
