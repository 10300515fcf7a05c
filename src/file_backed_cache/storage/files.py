from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
TEMP_SUFFIX = ".tmp"


def path_for_key(root: Path, key: str) -> Path:
    # Keys are validated to have no empty, "." or ".." segments.
    return root.joinpath(*key.split("/"))


def atomic_write(path: Path, data: bytes, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS) -> None:
    """
    Write `data` to `path` so that readers only ever see the old or the new content.

    The bytes go to a uniquely named temp file next to `path` (same directory, so
    same filesystem), written under an exclusive lock, flushed to disk, then
    renamed over `path`. Raises OSError (including filelock.Timeout) on failure;
    the temp file is removed in that case.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=TEMP_SUFFIX, dir=path.parent)
    tmp = Path(tmp_name)
    lock = FileLock(f"{tmp_name}.lock", timeout=lock_timeout)
    try:
        with os.fdopen(fd, "wb") as fh, lock:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
    finally:
        with contextlib.suppress(OSError):
            Path(lock.lock_file).unlink()


def remove_path(path: Path) -> bool:
    """
    Recursively remove `path`: children first, then the directory itself.
    Returns False if anything could not be removed; a missing path is success.
    """
    try:
        if path.is_dir() and not path.is_symlink():
            for child in list(path.iterdir()):
                remove_path(child)
            path.rmdir()
        else:
            path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("remove_path failed path=%s err=%s", path, e)
        return False
    return True
