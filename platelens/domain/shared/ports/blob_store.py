"""Blob store port (photos and ingredient thumbnails)."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredBlob:
    """Result of an upload.

    Attributes:
        path: Object path inside the bucket
        url: World-readable URL; access is gated by ``token`` embedded in it
        token: Opaque access token minted for this upload
    """

    path: str
    url: str
    token: str


class IBlobStore(Protocol):
    """Interface for binary object storage."""

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "public,max-age=31536000,immutable",
    ) -> StoredBlob:
        """Write ``data`` at ``path`` (overwriting) and return its tokenized URL."""
        ...

    async def download(self, path: str) -> bytes:
        """Read the object at ``path``.

        Raises:
            FileNotFoundError: If no object exists at ``path``
        """
        ...
