"""Content-derived ingredient identity.

Identity is a pure function of the name text: two callers naming the same
food ("Mozzarella Cheese", "mozzarella  cheese!") get the same id without
consulting any lookup table. The store is only needed to check whether a
thumbnail already exists for that id.
"""

import hashlib
import re
import unicodedata
from dataclasses import dataclass

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")

EMPTY_NAME_SLUG = "ingredient"
HASH_LENGTH = 8


@dataclass(frozen=True)
class IngredientIdentity:
    """
    Value object: stable identity of an ingredient name.

    Attributes:
        id: ``{slug}-{sha1(canonical_name)[:8]}``, short and URL-safe
        canonical_name: Normalized comparable form of the name
        slug: Hyphenated canonical name
        filename: Default thumbnail path in the blob store
    """

    id: str
    canonical_name: str
    slug: str
    filename: str


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def canonicalize_name(raw_name: str) -> str:
    """
    Normalize a free-text ingredient name.

    Steps: Unicode NFD, strip diacritics, lowercase, drop characters outside
    ``[a-z0-9\\s-]``, trim, collapse whitespace.

    Example:
        >>> canonicalize_name("  Crème  Fraîche (light)")
        'creme fraiche light'
    """
    text = _strip_diacritics(raw_name).lower()
    text = _DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text.strip())


def slugify(canonical_name: str) -> str:
    """Hyphenate a canonical name; empty names map to ``ingredient``."""
    slug = _DASHES.sub("-", _WHITESPACE.sub("-", canonical_name.strip()))
    return slug or EMPTY_NAME_SLUG


def derive_identity(raw_name: str) -> IngredientIdentity:
    """
    Derive the identity of an ingredient name.

    Example:
        >>> identity = derive_identity("Mozzarella cheese")
        >>> identity.slug
        'mozzarella-cheese'
        >>> identity.id.startswith("mozzarella-cheese-")
        True
    """
    canonical = canonicalize_name(raw_name)
    digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:HASH_LENGTH]
    slug = slugify(canonical)
    ingredient_id = f"{slug}-{digest}"
    return IngredientIdentity(
        id=ingredient_id,
        canonical_name=canonical,
        slug=slug,
        filename=f"ingredients/{slug}__{ingredient_id}.png",
    )
