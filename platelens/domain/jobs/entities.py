"""Job entities and their document mapping.

Documents use the camelCase field names shared with the client apps.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from platelens.domain.jobs.status import ImageJobStatus, ScanJobStatus

SCAN_JOBS_COLLECTION = "scan_jobs"
IMAGE_JOBS_COLLECTION = "image_jobs"


class ScanSource(str, Enum):
    PHOTO = "photo"
    TEXT = "text"


@dataclass
class ScanJob:
    """
    Entity: one asynchronous meal scan.

    Created as ``queued`` by the request handler together with a
    ``pending_scan`` meal; never deleted (kept as audit trail).

    Attributes:
        id: Scan identifier (document key)
        status: Current ScanJobStatus value
        source: PHOTO or TEXT
        meal_id: Parent MealLog to project the result onto
        storage_path: Blob path of the photo (photo scans)
        text_description: User text (text scans)
        attempts: Number of successful claims
        error: Last error message ("" when none)
    """

    id: str
    status: str
    source: ScanSource
    meal_id: Optional[str] = None
    storage_path: Optional[str] = None
    text_description: Optional[str] = None
    user_id: Optional[str] = None
    attempts: int = 0
    error: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, document_id: str, doc: Dict[str, Any]) -> "ScanJob":
        """
        Build a ScanJob from its stored document.

        Raises:
            ValueError: If ``source`` is not a known ScanSource
        """
        return cls(
            id=document_id,
            status=doc.get("status", ScanJobStatus.QUEUED.value),
            source=ScanSource(doc.get("source", ScanSource.PHOTO.value)),
            meal_id=doc.get("mealId") or None,
            storage_path=doc.get("storagePath") or None,
            text_description=doc.get("textDescription") or None,
            user_id=doc.get("userId"),
            attempts=int(doc.get("attempts") or 0),
            error=doc.get("error") or "",
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "source": self.source.value,
            "attempts": self.attempts,
            "error": self.error,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.meal_id:
            doc["mealId"] = self.meal_id
        if self.storage_path:
            doc["storagePath"] = self.storage_path
        if self.text_description:
            doc["textDescription"] = self.text_description
        if self.user_id:
            doc["userId"] = self.user_id
        return doc


@dataclass
class ImageJob:
    """
    Entity: thumbnail generation for one ingredient identity.

    Keyed by the ingredient id, so concurrent enqueues for the same
    ingredient collapse onto a single document.
    """

    ingredient_id: str
    status: str = ImageJobStatus.QUEUED.value
    attempts: int = 0
    error: str = ""
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, document_id: str, doc: Dict[str, Any]) -> "ImageJob":
        return cls(
            ingredient_id=document_id,
            status=doc.get("status", ImageJobStatus.QUEUED.value),
            attempts=int(doc.get("attempts") or 0),
            error=doc.get("error") or "",
            updated_at=doc.get("updatedAt"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "ingredientId": self.ingredient_id,
            "status": self.status,
            "attempts": self.attempts,
            "error": self.error,
            "updatedAt": self.updated_at,
        }
