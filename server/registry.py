# server/registry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Type, Optional
from pydantic import BaseModel

from sandboxfs.di import Container, build_container

# Import only the Pydantic input models from existing tool modules.
from server.tools.files import (
    FileTools,
    FsListIn,
    FsPathIn,
    FsReadIn,
    FsSetMtimeIn,
    FsWriteIn,
    TOOL_DESCRIPTIONS,
)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[BaseModel], Any]


# name -> input model; handler is the FileTools method of the same name
_FILE_TOOLS: Dict[str, Type[BaseModel]] = {
    "fs_exists": FsPathIn,
    "fs_read": FsReadIn,
    "fs_write": FsWriteIn,
    "fs_remove": FsPathIn,
    "fs_mkdir": FsPathIn,
    "fs_size": FsPathIn,
    "fs_mtime": FsPathIn,
    "fs_set_mtime": FsSetMtimeIn,
    "fs_list": FsListIn,
}


def _schema_from_model(model: Type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema()


def build_tool_registry(container: Optional[Container] = None) -> Dict[str, ToolSpec]:
    """
    Build a registry once at startup using DI.
    Transport layers (stdio/HTTP) read from this registry to expose tools.
    """
    container = container or build_container()
    handlers = FileTools(container.fs_service)

    reg: Dict[str, ToolSpec] = {}
    for name, model in _FILE_TOOLS.items():
        reg[name] = ToolSpec(
            name=name,
            description=TOOL_DESCRIPTIONS[name],
            input_model=model,
            handler=getattr(handlers, name),
        )
    return reg


def list_tools_payload(registry: Dict[str, ToolSpec]) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as per MCP Tools spec.
    """
    tools = []
    for spec in registry.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": _schema_from_model(spec.input_model),
        })
    return {"tools": tools}


def dispatch_tool_call(registry: Dict[str, ToolSpec], name: str, arguments: Dict[str, Any]) -> Any:
    """
    Validate args with the tool's Pydantic model, then invoke the named handler.
    """
    if name not in registry:
        raise KeyError(f"Tool not found: {name}")
    spec = registry[name]
    args_obj = spec.input_model(**arguments)
    return spec.handler(args_obj)

