"""Ingredient entity."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

INGREDIENTS_COLLECTION = "ingredients"


@dataclass
class Ingredient:
    """
    Entity: one distinct food, shared by every meal that mentions it.

    ``image_url`` is absent while the thumbnail is pending or after a failed
    generation; consumers must not treat that as an error to retry.
    """

    id: str
    canonical_name: str
    display_name: str
    slug: str
    storage_path: Optional[str] = None
    image_url: Optional[str] = None
    image_status: Optional[str] = None
    download_token: Optional[str] = None
    last_generated_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    @classmethod
    def from_document(cls, document_id: str, doc: Dict[str, Any]) -> "Ingredient":
        return cls(
            id=document_id,
            canonical_name=doc.get("canonicalName") or "",
            display_name=doc.get("displayName") or "",
            slug=doc.get("slug") or "",
            storage_path=doc.get("storagePath"),
            image_url=doc.get("imageUrl"),
            image_status=doc.get("imageStatus"),
            download_token=doc.get("downloadToken"),
            last_generated_at=doc.get("lastGeneratedAt"),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )
