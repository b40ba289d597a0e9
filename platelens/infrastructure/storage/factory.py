"""Blob store factory.

Environment variable: BLOB_BACKEND
Values:
    - "supabase": Supabase Storage (requires SUPABASE_URL and SUPABASE_KEY)
    - "inmemory": In-memory store (default)
"""

import logging
from typing import Union

from platelens.infrastructure.config import (
    get_blob_backend,
    get_signed_url_ttl_seconds,
    get_supabase_bucket,
    get_supabase_key,
    get_supabase_url,
)
from platelens.infrastructure.storage.in_memory import InMemoryBlobStore
from platelens.infrastructure.storage.supabase_store import SupabaseBlobStore

logger = logging.getLogger(__name__)


def create_blob_store() -> Union[InMemoryBlobStore, SupabaseBlobStore]:
    """Create the blob store selected by BLOB_BACKEND.

    Raises:
        ValueError: If BLOB_BACKEND=supabase without credentials, or the
            backend name is unknown
    """
    backend = get_blob_backend()

    if backend == "supabase":
        url = get_supabase_url()
        key = get_supabase_key()
        if not url or not key:
            raise ValueError(
                "BLOB_BACKEND=supabase but SUPABASE_URL/SUPABASE_KEY not set. "
                "Set them in .env or use BLOB_BACKEND=inmemory"
            )
        logger.info("Using Supabase blob store", extra={"bucket": get_supabase_bucket()})
        return SupabaseBlobStore(
            url=url,
            key=key,
            bucket=get_supabase_bucket(),
            signed_url_ttl_seconds=get_signed_url_ttl_seconds(),
        )

    if backend == "inmemory":
        return InMemoryBlobStore(bucket=get_supabase_bucket())

    raise ValueError(f"Unknown BLOB_BACKEND: {backend}. Use 'inmemory' or 'supabase'")
