# categorysync/models.py
"""
Category Sync Data Models

Pydantic models for the category resource and the cross-view update payload.
Snapshots are plain tuples of frozen Category instances so that a snapshot
held by a view can never be mutated by data still in flight.
"""

from typing import Optional, Dict, Any, Tuple
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class HttpVerb(str, Enum):
    """HTTP methods the client knows how to reason about."""
    GET = "GET"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_safe(self) -> bool:
        return self in (HttpVerb.GET, HttpVerb.HEAD, HttpVerb.OPTIONS)


class PayloadEncoding(str, Enum):
    """How an update request carries its fields."""
    JSON = "json"
    FORM = "form"
    QUERY = "query"


# =============================================================================
# DOMAIN MODELS
# =============================================================================

class Category(BaseModel):
    """A named, imaged catalog grouping."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    name: str = Field(min_length=1)
    image_url: str = Field(default="", alias="imageUrl")

    @field_validator("image_url", mode="before")
    @classmethod
    def missing_image_is_empty(cls, v):
        """The backend column is nullable; no image renders a placeholder."""
        return "" if v is None else v

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation sent to the backend."""
        return {"id": self.id, "name": self.name, "imageUrl": self.image_url}


# Ordered, immutable list of categories as held by a list view.
ListSnapshot = Tuple[Category, ...]


class PendingUpdate(BaseModel):
    """
    One-shot message carrying an edit from the edit view to the list view.

    ``issued_at`` is epoch milliseconds; two payloads with the same
    ``category_id`` and ``issued_at`` are the same logical update.
    """
    model_config = ConfigDict(frozen=True)

    category_id: int
    new_name: Optional[str] = None
    new_image_url: Optional[str] = None
    issued_at: int

    @property
    def key(self) -> Tuple[int, int]:
        return (self.category_id, self.issued_at)

    @property
    def is_noop(self) -> bool:
        return not self.new_name and self.new_image_url is None
