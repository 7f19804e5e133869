# sandboxfs/services/filesystem.py
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Union

from sandboxfs.services.result import ErrorKind, Result

logger = logging.getLogger(__name__)

_NS_PER_MS = 1_000_000


def _to_bytes(content: Union[bytes, str]) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8", "surrogateescape")
    return bytes(content)


def _ns_to_ms(ns: int) -> int:
    # Truncate toward zero, also for pre-epoch times
    ms = abs(ns) // _NS_PER_MS
    return ms if ns >= 0 else -ms


def _io_error(action: str, path: Path, exc: OSError) -> Result:
    logger.debug("%s failed for %s: %s", action, path, exc)
    return Result.failure(ErrorKind.IO_ERROR, f"{action} failed: {exc.strerror or exc}")


class SandboxedFilesystem:
    """
    Confine all file operations to a root directory.

    Every operation takes a path relative to the root (forward slashes) and
    returns a Result instead of raising. The root is fixed for the lifetime
    of the instance; it is normalized but neither created nor checked.
    """

    def __init__(self, root: Union[Path, str]):
        self._root = Path(root).resolve()

    def root(self) -> Path:
        return self._root

    def absolute(self, relative_path: str) -> Path:
        """Plain join of root and relative_path. Not validated."""
        return self._root / relative_path

    # ---------- Path validation ----------

    def _validate(self, relative_path: str) -> Result[Path]:
        if not relative_path:
            return Result.failure(ErrorKind.INVALID_PATH, "Empty path")
        try:
            p = (self._root / relative_path).resolve()
        except ValueError as e:
            # e.g. embedded null byte
            return Result.failure(ErrorKind.INVALID_PATH, str(e))
        except (OSError, RuntimeError) as e:
            # symlink loops
            return Result.failure(ErrorKind.IO_ERROR, f"resolve failed: {e}")
        # Component-wise containment: /data-other is not inside /data
        if not p.is_relative_to(self._root):
            logger.warning("Rejected path escaping sandbox root: %r", relative_path)
            return Result.failure(ErrorKind.PATH_ESCAPE, "Path escapes root directory")
        return Result.success(p)

    def _validate_entry(self, relative_path: str) -> Result[Path]:
        """Like _validate, but a trailing symlink is returned unresolved."""
        joined = self._root / relative_path
        if relative_path and joined.name not in ("", ".."):
            try:
                p = joined.parent.resolve() / joined.name
            except (ValueError, OSError, RuntimeError):
                p = None
            # the link lives inside root even when its target does not
            if p is not None and p.is_symlink() and p.is_relative_to(self._root):
                return Result.success(p)
        return self._validate(relative_path)

    def _to_relative(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    # ---------- Queries ----------

    def exists(self, relative_path: str) -> bool:
        checked = self._validate(relative_path)
        if not checked.ok:
            return False
        try:
            return checked.value.exists()
        except OSError:
            return False

    def size(self, relative_path: str) -> Result[int]:
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            st = p.stat()
        except OSError as e:
            return _io_error("stat", p, e)
        if stat.S_ISDIR(st.st_mode):
            return Result.failure(ErrorKind.IO_ERROR, "Is a directory")
        return Result.success(st.st_size)

    def mtime(self, relative_path: str) -> Result[int]:
        """Modification time in milliseconds since the epoch."""
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            st = p.stat()
        except OSError as e:
            return _io_error("stat", p, e)
        return Result.success(_ns_to_ms(st.st_mtime_ns))

    def set_mtime(self, relative_path: str, timestamp_ms: int) -> Result[None]:
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            atime_ns = p.stat().st_atime_ns
            os.utime(p, ns=(atime_ns, int(timestamp_ms) * _NS_PER_MS))
        except OSError as e:
            return _io_error("set mtime", p, e)
        return Result.success()

    # ---------- Content ----------

    def read(self, relative_path: str) -> Result[bytes]:
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            with open(p, "rb") as f:
                expected = os.fstat(f.fileno()).st_size
                data = f.read(expected)
        except OSError as e:
            return _io_error("read", p, e)
        if len(data) != expected:
            return Result.failure(
                ErrorKind.IO_ERROR, f"Short read: got {len(data)} of {expected} bytes"
            )
        return Result.success(data)

    def read_string(self, relative_path: str) -> Result[str]:
        raw = self.read(relative_path)
        if not raw.ok:
            return Result(error=raw.error)
        return Result.success(raw.value.decode("utf-8", "surrogateescape"))

    def write(self, relative_path: str, content: Union[bytes, str]) -> Result[None]:
        """Truncate-and-write, creating missing parent directories."""
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            data = _to_bytes(content)
        except UnicodeEncodeError as e:
            # lone surrogates other than surrogateescape's U+DC80..U+DCFF
            return Result.failure(ErrorKind.IO_ERROR, f"Cannot encode content: {e.reason}")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return _io_error("create directories", p.parent, e)
        try:
            with open(p, "wb") as f:
                written = f.write(data)
        except OSError as e:
            return _io_error("write", p, e)
        if written != len(data):
            return Result.failure(
                ErrorKind.IO_ERROR, f"Short write: wrote {written} of {len(data)} bytes"
            )
        return Result.success()

    def remove(self, relative_path: str) -> Result[None]:
        """
        Delete a file or empty directory. A missing target is not an error.
        A trailing symlink is removed itself, never its target.
        """
        checked = self._validate_entry(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            if p.is_dir() and not p.is_symlink():
                p.rmdir()
            else:
                p.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            return _io_error("remove", p, e)
        return Result.success()

    def mkdir(self, relative_path: str) -> Result[None]:
        checked = self._validate(relative_path)
        if not checked.ok:
            return Result(error=checked.error)
        p = checked.value
        try:
            p.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return _io_error("create directory", p, e)
        return Result.success()

    # ---------- Listing ----------

    def _listing_dir(self, relative_dir: str) -> Result[Path]:
        if not relative_dir:
            return Result.success(self._root)
        return self._validate(relative_dir)

    def list(self, relative_dir: str = "") -> Result[List[str]]:
        """Immediate children (files and directories) as root-relative paths."""
        checked = self._listing_dir(relative_dir)
        if not checked.ok:
            return Result(error=checked.error)
        d = checked.value
        if not d.exists():
            return Result.success([])
        if not d.is_dir():
            return Result.failure(ErrorKind.NOT_A_DIRECTORY, "Not a directory")

        entries: List[str] = []
        try:
            with os.scandir(d) as it:
                for entry in it:
                    entries.append(self._to_relative(d / entry.name))
        except OSError as e:
            return _io_error("list directory", d, e)
        return Result.success(entries)

    def list_recursive(self, relative_dir: str = "") -> Result[List[str]]:
        """All regular files in the subtree as root-relative paths."""
        checked = self._listing_dir(relative_dir)
        if not checked.ok:
            return Result(error=checked.error)
        d = checked.value
        if not d.exists():
            return Result.success([])
        if not d.is_dir():
            return Result.failure(ErrorKind.NOT_A_DIRECTORY, "Not a directory")

        def _raise(err: OSError):
            raise err

        entries: List[str] = []
        try:
            for dirpath, _dirnames, filenames in os.walk(d, onerror=_raise):
                base = Path(dirpath)
                for name in filenames:
                    fp = base / name
                    if fp.is_file():
                        entries.append(self._to_relative(fp))
        except OSError as e:
            return _io_error("list directory", d, e)
        return Result.success(entries)
