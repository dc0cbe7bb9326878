"""Atomic JSON file storage used by the file-backed repositories.

Files are written via temp-file-then-rename so readers never see a partial
document, with owner-only permissions (0o600) inside an owner-only
directory (0o700).
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_DATA_DIR_MODE = 0o700
_DATA_FILE_MODE = 0o600


class StorageReadError(OSError):
    """An existing file could not be read or parsed as JSON."""


def resolve_within(root: Path, name: str, suffix: str = ".json") -> Path:
    """Return root/name+suffix, rejecting names that escape root."""
    resolved_root = root.resolve()
    target = (resolved_root / f"{name}{suffix}").resolve()
    if not target.is_relative_to(resolved_root) or target.parent != resolved_root:
        raise ValueError(f"Path traversal rejected: '{name}' resolves outside {resolved_root}")
    return target


def read_json(path: Path) -> Any | None:  # noqa: ANN401
    """Load a JSON document; None when the file does not exist.

    Raises StorageReadError for unreadable or malformed files so callers
    never overwrite data they could not read.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        raise StorageReadError(f"Failed to read {path}") from exc


def write_json_atomic(path: Path, data: Any) -> None:  # noqa: ANN401
    """Atomically replace path with the JSON encoding of data."""
    path.parent.mkdir(mode=_DATA_DIR_MODE, parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp", prefix=f".{path.stem}_")
    fd_owned = True
    try:
        with os.fdopen(fd, "wb") as f:
            fd_owned = False  # os.fdopen took ownership; it will close fd
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, _DATA_FILE_MODE)  # noqa: PTH101
        Path(tmp_path).replace(path)
    except BaseException:
        if fd_owned:
            with contextlib.suppress(OSError):
                os.close(fd)
        with contextlib.suppress(OSError):
            Path(tmp_path).unlink()
        raise
    logger.debug("wrote json file", path=str(path), size=len(content))
