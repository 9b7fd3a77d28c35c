"""Unit tests for file token redaction in logs.

Tokens are bearer credentials carried in the URL path, so access log lines
must never contain them.
"""

import logging

from filetoken.core.middleware import (
    TOKEN_REDACTED,
    TokenRedactionFilter,
    install_token_redaction_logging,
    redact_token_from_path,
)

PREFIX = "/getfilesrc"
TOKEN = "1700000000aB3dE5fG7hJ9kL1"


def make_record(msg, args=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestRedactTokenFromPath:
    def test_redacts_token(self):
        assert redact_token_from_path(f"/getfilesrc/{TOKEN}", PREFIX) == f"/getfilesrc/{TOKEN_REDACTED}"

    def test_redacts_token_inside_log_line(self):
        line = f'127.0.0.1:5000 - "GET /getfilesrc/{TOKEN} HTTP/1.1" 200'
        result = redact_token_from_path(line, PREFIX)
        assert TOKEN not in result
        assert TOKEN_REDACTED in result

    def test_preserves_other_paths(self):
        for path in ["/healthz", "/docs", "/", "/getfilesrc/", "/other/getfile/abc"]:
            assert redact_token_from_path(path, PREFIX) == path

    def test_custom_prefix(self):
        assert redact_token_from_path("/f/abc123", "/f/") == f"/f/{TOKEN_REDACTED}"


class TestTokenRedactionFilter:
    def test_redacts_message(self):
        record = make_record(f"GET /getfilesrc/{TOKEN}")
        assert TokenRedactionFilter(PREFIX).filter(record) is True
        assert TOKEN not in record.getMessage()

    def test_redacts_tuple_args(self):
        # uvicorn access log format
        record = make_record(
            '%s - "%s %s HTTP/%s" %d',
            ("127.0.0.1:5000", "GET", f"/getfilesrc/{TOKEN}", "1.1", 200),
        )
        TokenRedactionFilter(PREFIX).filter(record)

        message = record.getMessage()
        assert TOKEN not in message
        assert f"/getfilesrc/{TOKEN_REDACTED}" in message
        assert "200" in message

    def test_redacts_dict_args(self):
        record = make_record("%(path)s", ({"path": f"/getfilesrc/{TOKEN}"},))
        TokenRedactionFilter(PREFIX).filter(record)
        assert TOKEN not in record.getMessage()

    def test_leaves_non_string_args(self):
        record = make_record("%d %s", (404, "Token not found"))
        TokenRedactionFilter(PREFIX).filter(record)
        assert record.getMessage() == "404 Token not found"


def test_install_adds_filter_to_access_logger():
    access_logger = logging.getLogger("uvicorn.access")
    installed = install_token_redaction_logging(PREFIX)
    try:
        assert installed in access_logger.filters
        assert installed in logging.getLogger().filters
    finally:
        for name in ["", "uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "filetoken"]:
            logging.getLogger(name).removeFilter(installed)
