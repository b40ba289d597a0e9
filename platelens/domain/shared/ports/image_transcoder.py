"""Image transcoder port.

Thumbnail transcoding is best-effort: the implementation is chosen once at
startup, and a passthrough implementation keeps the pipeline working when no
codec is available.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class TranscodedImage:
    data: bytes
    content_type: str


class IImageTranscoder(Protocol):
    """Interface for thumbnail transcoders."""

    def name(self) -> str:  # identifier for logging
        ...

    async def transcode(self, data: bytes) -> TranscodedImage:
        """Convert raw generated image bytes into the stored format."""
        ...

    def target_path(self, storage_path: str) -> str:
        """Rewrite a storage path so its extension matches the output format."""
        ...
