# sandboxfs/services/result.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_PATH = "invalid_path"
    PATH_ESCAPE = "path_escape"
    IO_ERROR = "io_error"
    NOT_A_DIRECTORY = "not_a_directory"


@dataclass(frozen=True)
class FsError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SandboxError(Exception):
    """Raised by Result.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: FsError):
        super().__init__(str(error))
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Success-or-error outcome of a filesystem operation.
    Exactly one of `value` / `error` is meaningful; check `ok` first.
    """
    value: Optional[T] = None
    error: Optional[FsError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=FsError(kind, message))

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise SandboxError(self.error)
        return self.value  # type: ignore[return-value]

    def to_payload(self) -> Dict[str, Any]:
        if self.error is not None:
            return {
                "ok": False,
                "error": {"kind": self.error.kind.value, "message": self.error.message},
            }
        return {"ok": True, "value": self.value}
