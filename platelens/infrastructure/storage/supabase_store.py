"""Supabase Storage blob store.

The supabase client is synchronous; calls run in the default executor so
the event loop keeps serving other jobs while an upload is in flight.
Objects are private: the returned URL is a long-lived signed URL whose
``token`` query parameter is the access token.
"""

import asyncio
import functools
import logging
import re
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlparse

from supabase import Client, create_client

from platelens.domain.shared.ports.blob_store import StoredBlob

logger = logging.getLogger(__name__)

_MAX_AGE_RE = re.compile(r"max-age=(\d+)")


def _max_age(cache_control: str) -> str:
    # storage client expects the max-age seconds only
    match = _MAX_AGE_RE.search(cache_control)
    return match.group(1) if match else "3600"


class SupabaseBlobStore:
    """
    Supabase Storage implementation of IBlobStore.

    Example:
        >>> store = SupabaseBlobStore(url="https://xyz.supabase.co", key="...")
        >>> blob = await store.upload("ingredients/egg__egg-1a2b3c4d.webp", data, "image/webp")
        >>> blob.url
        'https://xyz.supabase.co/storage/v1/object/sign/platelens/...?token=...'
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        bucket: str = "platelens",
        signed_url_ttl_seconds: int = 365 * 24 * 3600,
        client: Optional[Client] = None,
    ):
        if client is None:
            if not url or not key:
                raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
            client = create_client(url, key)
        self._client = client
        self._bucket = bucket
        self._signed_url_ttl_seconds = signed_url_ttl_seconds

    async def _run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "public,max-age=31536000,immutable",
    ) -> StoredBlob:
        bucket = self._client.storage.from_(self._bucket)
        try:
            await self._run(
                bucket.upload,
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "cache-control": _max_age(cache_control),
                    "upsert": "true",
                },
            )
            signed = await self._run(bucket.create_signed_url, path, self._signed_url_ttl_seconds)
        except Exception as e:
            logger.error(
                "Blob upload failed",
                extra={"bucket": self._bucket, "path": path, "error": str(e)},
                exc_info=True,
            )
            raise

        url = signed.get("signedURL") or signed.get("signedUrl")
        if not url:
            raise RuntimeError(f"Supabase returned no signed URL for {path}")
        token = parse_qs(urlparse(url).query).get("token", [""])[0]

        logger.info(
            "Blob uploaded",
            extra={"bucket": self._bucket, "path": path, "size": len(data), "content_type": content_type},
        )
        return StoredBlob(path=path, url=url, token=token)

    async def download(self, path: str) -> bytes:
        bucket = self._client.storage.from_(self._bucket)
        try:
            return await self._run(bucket.download, path)
        except Exception as e:
            status = str(getattr(e, "status", "") or getattr(e, "code", ""))
            if status == "404" or "not found" in str(e).lower():
                raise FileNotFoundError(path) from e
            logger.error(
                "Blob download failed",
                extra={"bucket": self._bucket, "path": path, "error": str(e)},
            )
            raise
