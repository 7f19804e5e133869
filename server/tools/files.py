# server/tools/files.py
from __future__ import annotations
import base64
import binascii
import logging
from typing import Any, Callable, Dict, Literal, Optional
from pydantic import BaseModel, Field
from fastmcp import FastMCP

from sandboxfs.logging import log_tool_call
from sandboxfs.services.filesystem import SandboxedFilesystem
from sandboxfs.services.result import Result

logger = logging.getLogger(__name__)

Encoding = Literal["text", "base64"]


class FsPathIn(BaseModel):
    path: str = Field(..., description="Relative path under sandbox root")


class FsReadIn(FsPathIn):
    encoding: Encoding = Field(
        "text", description="'text' (UTF-8, invalid bytes replaced) or 'base64' (raw bytes)"
    )


class FsWriteIn(FsPathIn):
    content: str = Field(..., description="Text content, or base64 when encoding='base64'")
    encoding: Encoding = Field("text", description="How 'content' is encoded")


class FsSetMtimeIn(FsPathIn):
    mtime_ms: int = Field(..., description="Modification time in milliseconds since the epoch")


class FsListIn(BaseModel):
    path: str = Field("", description="Relative directory under sandbox root ('' = root)")
    recursive: bool = Field(
        False, description="Walk the whole subtree and return files only"
    )


TOOL_DESCRIPTIONS: Dict[str, str] = {
    "fs_exists": "Check whether a path exists under sandbox root",
    "fs_read": "Read a file under sandbox root",
    "fs_write": "Write (truncate) a file under sandbox root, creating parent directories",
    "fs_remove": "Delete a file or empty directory (missing is not an error)",
    "fs_mkdir": "Create a directory and its parents under sandbox root",
    "fs_size": "Size of a file in bytes",
    "fs_mtime": "Modification time of a path (ms since epoch)",
    "fs_set_mtime": "Set modification time of a path (ms since epoch)",
    "fs_list": "List a directory under sandbox root (optionally recursive, files only)",
}


def _payload(result: Result, transform: Optional[Callable[[Any], Any]] = None) -> Dict[str, Any]:
    if result.ok and transform is not None:
        return {"ok": True, "value": transform(result.value)}
    return result.to_payload()


class FileTools:
    """
    Named handlers shared by the stdio and HTTP transports.
    Each takes a validated input model and returns a JSON-ready payload.
    """

    def __init__(self, fs: SandboxedFilesystem):
        self.fs = fs

    def fs_exists(self, args: FsPathIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_exists", args.model_dump())
        return {"ok": True, "value": self.fs.exists(args.path)}

    def fs_read(self, args: FsReadIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_read", args.model_dump())
        res = self.fs.read(args.path)
        if args.encoding == "base64":
            return _payload(res, lambda b: base64.b64encode(b).decode("ascii"))
        return _payload(res, lambda b: b.decode("utf-8", "replace"))

    def fs_write(self, args: FsWriteIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_write", args.model_dump())
        if args.encoding == "base64":
            try:
                data = base64.b64decode(args.content, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Invalid base64 content: {e}") from e
            return _payload(self.fs.write(args.path, data))
        return _payload(self.fs.write(args.path, args.content))

    def fs_remove(self, args: FsPathIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_remove", args.model_dump())
        return _payload(self.fs.remove(args.path))

    def fs_mkdir(self, args: FsPathIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_mkdir", args.model_dump())
        return _payload(self.fs.mkdir(args.path))

    def fs_size(self, args: FsPathIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_size", args.model_dump())
        return _payload(self.fs.size(args.path))

    def fs_mtime(self, args: FsPathIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_mtime", args.model_dump())
        return _payload(self.fs.mtime(args.path))

    def fs_set_mtime(self, args: FsSetMtimeIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_set_mtime", args.model_dump())
        return _payload(self.fs.set_mtime(args.path, args.mtime_ms))

    def fs_list(self, args: FsListIn) -> Dict[str, Any]:
        log_tool_call(logger, "fs_list", args.model_dump())
        if args.recursive:
            return _payload(self.fs.list_recursive(args.path))
        return _payload(self.fs.list(args.path))


def register_file_tools(mcp: FastMCP, fs_service: SandboxedFilesystem):
    """
    Very thin tool adapters:
    - validate/deserialize inputs (Pydantic)
    - call the service (business logic + security)
    - return the result payload ({"ok": ..., "value" | "error": ...})
    """
    tools = FileTools(fs_service)

    @mcp.tool(name="fs_exists", description=TOOL_DESCRIPTIONS["fs_exists"])
    def fs_exists(input: FsPathIn) -> Dict[str, Any]:
        return tools.fs_exists(input)

    @mcp.tool(name="fs_read", description=TOOL_DESCRIPTIONS["fs_read"])
    def fs_read(input: FsReadIn) -> Dict[str, Any]:
        return tools.fs_read(input)

    @mcp.tool(name="fs_write", description=TOOL_DESCRIPTIONS["fs_write"])
    def fs_write(input: FsWriteIn) -> Dict[str, Any]:
        return tools.fs_write(input)

    @mcp.tool(name="fs_remove", description=TOOL_DESCRIPTIONS["fs_remove"])
    def fs_remove(input: FsPathIn) -> Dict[str, Any]:
        return tools.fs_remove(input)

    @mcp.tool(name="fs_mkdir", description=TOOL_DESCRIPTIONS["fs_mkdir"])
    def fs_mkdir(input: FsPathIn) -> Dict[str, Any]:
        return tools.fs_mkdir(input)

    @mcp.tool(name="fs_size", description=TOOL_DESCRIPTIONS["fs_size"])
    def fs_size(input: FsPathIn) -> Dict[str, Any]:
        return tools.fs_size(input)

    @mcp.tool(name="fs_mtime", description=TOOL_DESCRIPTIONS["fs_mtime"])
    def fs_mtime(input: FsPathIn) -> Dict[str, Any]:
        return tools.fs_mtime(input)

    @mcp.tool(name="fs_set_mtime", description=TOOL_DESCRIPTIONS["fs_set_mtime"])
    def fs_set_mtime(input: FsSetMtimeIn) -> Dict[str, Any]:
        return tools.fs_set_mtime(input)

    @mcp.tool(name="fs_list", description=TOOL_DESCRIPTIONS["fs_list"])
    def fs_list(input: FsListIn) -> Dict[str, Any]:
        return tools.fs_list(input)
