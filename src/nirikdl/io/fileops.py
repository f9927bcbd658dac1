"""Config file IO: output location, content fingerprints, locked atomic replace."""

from __future__ import annotations

import hashlib
import os
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import portalocker

CONFIG_RELPATH = Path("niri") / "config.kdl"
TMP_PREFIX = ".nirikdl_tmp_"
# Poll interval while waiting on a held config lock
LOCK_POLL_S = 0.05


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/niri/config.kdl``, or ``~/.config/niri/config.kdl``."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / CONFIG_RELPATH


def fingerprint_bytes(data: bytes) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()


def fingerprint(path: str | Path) -> str | None:
    """Fingerprint of a config file's current content, ``None`` when absent."""
    try:
        return fingerprint_bytes(Path(path).read_bytes())
    except FileNotFoundError:
        return None


def replace_file(target: Path, data: bytes) -> None:
    """Swap ``data`` into ``target`` so niri never reads a half-written config."""
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        dir=target.parent, prefix=TMP_PREFIX, suffix=target.suffix, delete=False
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, target)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def lock_path_for(config_path: str | Path) -> Path:
    config_path = Path(config_path).resolve()
    return config_path.with_name(config_path.name + ".lock")


@contextmanager
def config_lock(config_path: str | Path, *, timeout: float = 0) -> Iterator[Path]:
    """Hold the ``<config>.lock`` sidecar while the config is compared and replaced.

    A held lock raises ``portalocker.LockException`` immediately with
    ``timeout=0``, otherwise once ``timeout`` seconds have passed.
    """
    lock_path = lock_path_for(config_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + max(timeout, 0)
    with open(lock_path, "a") as handle:
        while True:
            try:
                portalocker.lock(handle, portalocker.LOCK_EX | portalocker.LOCK_NB)
                break
            except portalocker.LockException:
                if time.monotonic() >= deadline:
                    raise
                time.sleep(LOCK_POLL_S)
        try:
            yield lock_path
        finally:
            portalocker.unlock(handle)


def read_text_safe(path: str | Path) -> str:
    """Read a UTF-8 text file, dropping a leading BOM if an editor added one."""
    return Path(path).read_text(encoding="utf-8-sig")
