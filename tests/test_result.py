# tests/test_result.py
import pytest

from sandboxfs.services.result import ErrorKind, Result, SandboxError


def test_success_payload_and_unwrap():
    res = Result.success([1, 2])
    assert res.ok
    assert res.unwrap() == [1, 2]
    assert res.to_payload() == {"ok": True, "value": [1, 2]}


def test_failure_payload_and_unwrap():
    res = Result.failure(ErrorKind.PATH_ESCAPE, "Path escapes root directory")
    assert not res.ok
    assert res.to_payload() == {
        "ok": False,
        "error": {"kind": "path_escape", "message": "Path escapes root directory"},
    }
    with pytest.raises(SandboxError) as exc:
        res.unwrap()
    assert exc.value.kind is ErrorKind.PATH_ESCAPE
    assert "path_escape" in str(exc.value)


def test_unit_success_is_ok():
    assert Result.success().ok
    assert Result.success().unwrap() is None
