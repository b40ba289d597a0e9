"""Thumbnail transcoders.

The transcoder is selected once at startup from IMAGE_TRANSCODER:
- "webp" → PillowWebpTranscoder (512×512 cover crop, WebP quality 80)
- "passthrough" → PassthroughTranscoder (stores the generated PNG as-is)

When Pillow was built without WebP support the factory logs a warning and
falls back to passthrough.
"""

import asyncio
import io
import logging
from typing import Union

from PIL import Image, ImageOps, features

from platelens.domain.shared.ports.image_transcoder import TranscodedImage
from platelens.infrastructure.config import get_image_transcoder

logger = logging.getLogger(__name__)


def _replace_suffix(path: str, old: str, new: str) -> str:
    if path.lower().endswith(old):
        return path[: -len(old)] + new
    return path


class PassthroughTranscoder:
    """Keeps the generated PNG bytes unchanged."""

    def name(self) -> str:
        return "passthrough"

    async def transcode(self, data: bytes) -> TranscodedImage:
        return TranscodedImage(data=data, content_type="image/png")

    def target_path(self, storage_path: str) -> str:
        return _replace_suffix(storage_path, ".webp", ".png")


class PillowWebpTranscoder:
    """
    Center-crops to a square thumbnail and encodes it as WebP.

    Encoding runs in the default executor; Pillow work is CPU-bound.
    """

    def __init__(self, size: int = 512, quality: int = 80) -> None:
        self._size = size
        self._quality = quality

    def name(self) -> str:
        return "webp"

    def _encode(self, data: bytes) -> bytes:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            thumb = ImageOps.fit(img, (self._size, self._size), method=Image.Resampling.LANCZOS)
            output = io.BytesIO()
            thumb.save(output, format="WEBP", quality=self._quality)
            return output.getvalue()

    async def transcode(self, data: bytes) -> TranscodedImage:
        loop = asyncio.get_running_loop()
        encoded = await loop.run_in_executor(None, self._encode, data)
        logger.debug(
            "Thumbnail transcoded",
            extra={"input_bytes": len(data), "output_bytes": len(encoded), "size": self._size},
        )
        return TranscodedImage(data=encoded, content_type="image/webp")

    def target_path(self, storage_path: str) -> str:
        return _replace_suffix(storage_path, ".png", ".webp")


ImageTranscoder = Union[PassthroughTranscoder, PillowWebpTranscoder]


def create_image_transcoder() -> ImageTranscoder:
    """Create the transcoder selected by IMAGE_TRANSCODER.

    Raises:
        ValueError: If the transcoder name is unknown
    """
    mode = get_image_transcoder()

    if mode == "passthrough":
        return PassthroughTranscoder()

    if mode == "webp":
        if not features.check("webp"):
            logger.warning("Pillow has no WebP support, storing thumbnails as PNG")
            return PassthroughTranscoder()
        return PillowWebpTranscoder()

    raise ValueError(f"Unknown IMAGE_TRANSCODER: {mode}. Use 'webp' or 'passthrough'")
