"""MealLog entity: the user-visible result of a scan.

A meal is created as ``pending_scan`` before its scan job exists and becomes
``ready`` only when the scan job processor projects a successful result onto
it. Users may cancel (or delete) it while the scan is in flight.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from platelens.domain.enrichment.entities import DetectedIngredient
from platelens.domain.nutrition.entities import Macros, NutritionTotals

MEALS_COLLECTION = "logs"


class MealStatus(str, Enum):
    PENDING_SCAN = "pending_scan"
    READY = "ready"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class IngredientLine:
    """
    One ingredient of a meal, with its resolved identity.

    ``id`` links the line to the shared Ingredient document so clients can
    pick up the thumbnail once it is generated.
    """

    name: str
    estimated_weight_g: float
    calories: float
    macros: Macros
    portion_text: str = ""
    notes: Optional[str] = None
    id: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_detected(
        cls,
        detected: DetectedIngredient,
        ingredient_id: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> "IngredientLine":
        return cls(
            name=detected.name,
            estimated_weight_g=detected.estimated_weight_g,
            calories=detected.calories,
            macros=detected.macros,
            portion_text=detected.portion_text,
            notes=detected.notes,
            id=ingredient_id,
            image_url=image_url,
        )

    def nutrition(self) -> NutritionTotals:
        return NutritionTotals(
            calories=self.calories, p=self.macros.p, c=self.macros.c, f=self.macros.f
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "name": self.name,
            "portion_text": self.portion_text,
            "estimated_weight_g": self.estimated_weight_g,
            "calories": self.calories,
            "macros": self.macros.to_document(),
        }
        if self.notes:
            doc["notes"] = self.notes
        if self.id:
            doc["id"] = self.id
        if self.image_url:
            doc["imageUrl"] = self.image_url
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "IngredientLine":
        return cls(
            name=doc.get("name") or "",
            estimated_weight_g=float(doc.get("estimated_weight_g") or 0.0),
            calories=float(doc.get("calories") or 0.0),
            macros=Macros.from_document(doc.get("macros")),
            portion_text=doc.get("portion_text") or "",
            notes=doc.get("notes"),
            id=doc.get("id"),
            image_url=doc.get("imageUrl"),
        )


@dataclass
class MealLog:
    """Entity: a logged meal (document in the ``logs`` collection)."""

    id: str
    status: str = MealStatus.PENDING_SCAN.value
    user_id: Optional[str] = None
    dish_title: Optional[str] = None
    ingredients: List[IngredientLine] = field(default_factory=list)
    total_calories: float = 0
    macros: Macros = field(default_factory=Macros)
    confidence: float = 0.0
    scan_id: Optional[str] = None
    image_storage_path: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == MealStatus.CANCELLED.value

    @classmethod
    def from_document(cls, document_id: str, doc: Dict[str, Any]) -> "MealLog":
        return cls(
            id=document_id,
            status=doc.get("status", MealStatus.PENDING_SCAN.value),
            user_id=doc.get("userId"),
            dish_title=doc.get("dishTitle"),
            ingredients=[IngredientLine.from_document(d) for d in doc.get("ingredientsList") or []],
            total_calories=doc.get("totalCalories") or 0,
            macros=Macros.from_document(doc.get("macros")),
            confidence=float(doc.get("confidence") or 0.0),
            scan_id=doc.get("scanId"),
            image_storage_path=doc.get("imageStoragePath"),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "id": self.id,
            "status": self.status,
            "dishTitle": self.dish_title,
            "ingredientsList": [line.to_document() for line in self.ingredients],
            "totalCalories": self.total_calories,
            "macros": self.macros.to_document(),
            "confidence": self.confidence,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.user_id:
            doc["userId"] = self.user_id
        if self.scan_id:
            doc["scanId"] = self.scan_id
        if self.image_storage_path:
            doc["imageStoragePath"] = self.image_storage_path
        return doc
