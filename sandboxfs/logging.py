# sandboxfs/logging.py
import json
import logging
import os
import re
from typing import Any, Dict, Optional

PII_RE = re.compile(r"([\w\.-]+)@([\w\.-]+)")  # naive email redaction

# Tool arguments that carry file payloads; logged as a size only
CONTENT_KEYS = {"content"}


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_str(s: str) -> str:
    return PII_RE.sub("[redacted-email]", s)


def redact_args(args: Dict[str, Any]) -> Dict[str, Any]:
    safe = json.loads(json.dumps(args, default=str))  # shallow copy via JSON
    for k, v in list(safe.items()):
        if k in CONTENT_KEYS and isinstance(v, str):
            safe[k] = f"<{len(v)} chars>"
        elif isinstance(v, str):
            safe[k] = redact_str(v)
    return safe


def log_tool_call(logger: logging.Logger, name: str, args: Dict[str, Any]):
    logger.info("tool_call %s %s", name, redact_args(args))
