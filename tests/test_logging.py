# tests/test_logging.py
from sandboxfs.logging import redact_args


def test_redact_args_masks_email_and_content():
    out = redact_args({"path": "users/jane@example.com.txt", "content": "secret body"})
    assert "jane@example.com" not in out["path"]
    assert out["content"] == "<11 chars>"


def test_redact_args_keeps_other_values():
    out = redact_args({"path": "a.txt", "recursive": True, "mtime_ms": 5})
    assert out == {"path": "a.txt", "recursive": True, "mtime_ms": 5}
