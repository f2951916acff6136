# This project was developed with assistance from AI tools.
"""Private per-client file storage on the local filesystem.

Captured ID images and signed documents live under
``<UPLOAD_ROOT>/client_<id>/`` and are only reachable through the
``/api/secured-files/<id>/<name>`` route. Blocking file I/O runs in a
thread-pool executor. The module exposes a singleton initialised at app
startup via ``init_storage_service()``.
"""

import asyncio
import logging
import os
from functools import partial
from pathlib import Path
from urllib.parse import unquote, urlparse

from ..core.config import Settings

logger = logging.getLogger(__name__)

SECURED_FILES_PREFIX = "/api/secured-files"

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


def parse_secured_url(url: str) -> tuple[int, str] | None:
    """Split a ``/api/secured-files/<id>/<name>`` path into (client id, name).

    Returns None for any other URL or a malformed secured one.
    """
    path = unquote(urlparse(url).path)
    if not path.startswith(SECURED_FILES_PREFIX + "/"):
        return None
    client_part, _, file_name = path[len(SECURED_FILES_PREFIX) + 1:].partition("/")
    if not client_part.isdigit() or not file_name:
        return None
    return int(client_part), file_name


def is_secured_url(url: str) -> bool:
    return unquote(urlparse(url).path).startswith(SECURED_FILES_PREFIX + "/")


class StorageService:
    """Reads and writes files inside per-client private directories."""

    def __init__(self, root: Path, public_root: Path):
        self._root = Path(root).resolve()
        self._public_root = Path(public_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def public_root(self) -> Path:
        return self._public_root

    def client_dir(self, client_id: int) -> Path:
        return self._root / f"client_{client_id}"

    def resolve(self, client_id: int, filename: str) -> Path | None:
        """Return the on-disk path of a client file, or None if it is unsafe.

        Strips path components from filename to prevent path traversal attacks.
        """
        safe_name = os.path.basename(filename)
        if not safe_name or safe_name in (".", ".."):
            return None
        return self.client_dir(client_id) / safe_name

    @staticmethod
    def build_url(client_id: int, filename: str) -> str:
        """Externally addressable URL for a stored client file."""
        return f"{SECURED_FILES_PREFIX}/{client_id}/{filename}"

    @staticmethod
    def content_type_for(filename: str) -> str:
        return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save_file(self, client_id: int, filename: str, data: bytes) -> str:
        """Write bytes into the client's directory and return the secured URL."""
        path = self.resolve(client_id, filename)
        if path is None:
            raise ValueError(f"Invalid filename: {filename!r}")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._write, path, data))
        logger.info("Stored %s (%d bytes) for client %s", path.name, len(data), client_id)
        return self.build_url(client_id, path.name)

    async def delete_file(self, client_id: int, filename: str) -> None:
        """Remove a client file if present."""
        path = self.resolve(client_id, filename)
        if path is None:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(path.unlink, missing_ok=True))

    async def exists(self, path: Path) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, path.is_file)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: StorageService | None = None


def init_storage_service(cfg: Settings) -> StorageService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = StorageService(root=cfg.UPLOAD_ROOT, public_root=cfg.PUBLIC_ROOT)
    logger.info("StorageService initialised (root=%s)", _service.root)
    return _service


def get_storage_service() -> StorageService:
    """Return the initialised StorageService singleton."""
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage_service() first")
    return _service
