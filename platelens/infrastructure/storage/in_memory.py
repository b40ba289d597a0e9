"""In-memory blob store for development and tests."""

import logging
import uuid
from typing import Dict, Tuple

from platelens.domain.shared.ports.blob_store import StoredBlob

logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """
    In-memory implementation of IBlobStore.

    URLs look like ``memory://{bucket}/{path}?token={uuid}``. Every upload
    mints a new token, mirroring a storage service that issues a fresh
    download token per object version.
    """

    def __init__(self, bucket: str = "platelens") -> None:
        self._bucket = bucket
        self._objects: Dict[str, Tuple[bytes, str]] = {}

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "public,max-age=31536000,immutable",
    ) -> StoredBlob:
        self._objects[path] = (bytes(data), content_type)
        token = str(uuid.uuid4())
        logger.debug(
            "Blob stored in memory",
            extra={"path": path, "size": len(data), "content_type": content_type},
        )
        return StoredBlob(path=path, url=f"memory://{self._bucket}/{path}?token={token}", token=token)

    async def download(self, path: str) -> bytes:
        if path not in self._objects:
            raise FileNotFoundError(path)
        return self._objects[path][0]

    def content_type(self, path: str) -> str:
        """Content type recorded at upload (tests only)."""
        return self._objects[path][1]

    def paths(self) -> list:
        return sorted(self._objects)
