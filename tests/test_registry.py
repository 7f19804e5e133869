# tests/test_registry.py
import asyncio
import base64
from pathlib import Path

import pytest
from pydantic import ValidationError

from sandboxfs.config import Settings
from sandboxfs.di import build_container
from server.registry import build_tool_registry, dispatch_tool_call, list_tools_payload


@pytest.fixture
def registry(tmp_path: Path):
    container = build_container(Settings(SANDBOX_ROOT=tmp_path / "box"))
    return build_tool_registry(container)


def test_container_creates_root(tmp_path: Path):
    c = build_container(Settings(SANDBOX_ROOT=tmp_path / "box"))
    assert (tmp_path / "box").is_dir()
    assert c.fs_service.root() == (tmp_path / "box").resolve()


def test_container_can_skip_root_creation(tmp_path: Path):
    build_container(Settings(SANDBOX_ROOT=tmp_path / "box", SANDBOX_CREATE_ROOT=False))
    assert not (tmp_path / "box").exists()


def test_tools_list_has_schemas(registry):
    payload = list_tools_payload(registry)
    names = {t["name"] for t in payload["tools"]}
    assert names == {
        "fs_exists", "fs_read", "fs_write", "fs_remove", "fs_mkdir",
        "fs_size", "fs_mtime", "fs_set_mtime", "fs_list",
    }
    write = next(t for t in payload["tools"] if t["name"] == "fs_write")
    assert "path" in write["inputSchema"]["properties"]


def test_write_read_list_through_registry(registry):
    out = dispatch_tool_call(registry, "fs_write", {"path": "notes/a.txt", "content": "hi"})
    assert out == {"ok": True, "value": None}

    out = dispatch_tool_call(registry, "fs_read", {"path": "notes/a.txt"})
    assert out == {"ok": True, "value": "hi"}

    out = dispatch_tool_call(registry, "fs_list", {"path": "notes"})
    assert out == {"ok": True, "value": ["notes/a.txt"]}

    out = dispatch_tool_call(registry, "fs_list", {"recursive": True})
    assert out == {"ok": True, "value": ["notes/a.txt"]}

    assert dispatch_tool_call(registry, "fs_size", {"path": "notes/a.txt"})["value"] == 2
    assert dispatch_tool_call(registry, "fs_exists", {"path": "notes/a.txt"})["value"] is True


def test_base64_round_trip(registry):
    raw = b"\x00\xffbinary"
    enc = base64.b64encode(raw).decode("ascii")
    dispatch_tool_call(registry, "fs_write", {"path": "b.bin", "content": enc, "encoding": "base64"})
    out = dispatch_tool_call(registry, "fs_read", {"path": "b.bin", "encoding": "base64"})
    assert base64.b64decode(out["value"]) == raw


def test_bad_base64_is_rejected(registry):
    with pytest.raises(ValueError):
        dispatch_tool_call(
            registry, "fs_write", {"path": "b.bin", "content": "***", "encoding": "base64"}
        )


def test_escape_reported_as_error_payload(registry):
    out = dispatch_tool_call(registry, "fs_read", {"path": "../../etc/passwd"})
    assert out["ok"] is False
    assert out["error"]["kind"] == "path_escape"


def test_mtime_tools(registry):
    dispatch_tool_call(registry, "fs_write", {"path": "t.txt", "content": "x"})
    out = dispatch_tool_call(registry, "fs_set_mtime", {"path": "t.txt", "mtime_ms": 1_600_000_000_321})
    assert out["ok"] is True
    assert dispatch_tool_call(registry, "fs_mtime", {"path": "t.txt"})["value"] == 1_600_000_000_321


def test_mkdir_and_remove_tools(registry):
    assert dispatch_tool_call(registry, "fs_mkdir", {"path": "d/e"})["ok"]
    assert dispatch_tool_call(registry, "fs_remove", {"path": "d/e"})["ok"]
    assert dispatch_tool_call(registry, "fs_remove", {"path": "d/e"})["ok"]
    assert dispatch_tool_call(registry, "fs_exists", {"path": "d/e"})["value"] is False


def test_unknown_tool_and_bad_args(registry):
    with pytest.raises(KeyError):
        dispatch_tool_call(registry, "fs_nope", {})
    with pytest.raises(ValidationError):
        dispatch_tool_call(registry, "fs_set_mtime", {"path": "x"})


def test_register_file_tools_on_fastmcp(tmp_path: Path):
    from fastmcp import FastMCP
    from sandboxfs.services.filesystem import SandboxedFilesystem
    from server.tools.files import TOOL_DESCRIPTIONS, register_file_tools

    mcp = FastMCP("test")
    register_file_tools(mcp, SandboxedFilesystem(tmp_path))

    tools = asyncio.run(mcp.get_tools())
    assert set(tools) == set(TOOL_DESCRIPTIONS)
    assert len(tools) == 9
    assert tools["fs_read"].description == TOOL_DESCRIPTIONS["fs_read"]
