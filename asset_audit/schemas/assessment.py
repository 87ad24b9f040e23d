"""Assessment record schemas and the category/element catalog."""

from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator

ELEMENTS: dict[str, list[str]] = {
    "Civil": ["Roof", "External wall", "Internal wall", "Floor", "Ceiling", "Doors/Windows"],
    "Electrical": ["Lighting", "Sockets", "Wiring", "DB/Panel", "Earthing"],
    "Mechanical": ["HVAC", "Pumps", "Fire system", "Water distribution", "Pipe"],
}

SCORE_LABELS = {1: "Excellent", 2: "Good", 3: "Plan", 4: "Poor", 5: "Replace"}


def score_label(value: int) -> str:
    """Human label for a 1-5 condition/priority score."""
    if value not in SCORE_LABELS:
        raise ValueError(f"Score must be between 1 and 5, got {value}")
    return SCORE_LABELS[value]


def validate_catalog(category: str, element: str) -> None:
    if category not in ELEMENTS:
        raise ValueError(f"Unknown category: {category!r}")
    if element not in ELEMENTS[category]:
        raise ValueError(f"Element {element!r} is not part of category {category!r}")


class AssessmentCreate(BaseModel):
    """Draft submitted by the capture flow; attachment_ref is still a local ref."""

    category: str
    element: str
    condition: int = Field(ge=1, le=5)
    priority: int = Field(ge=1, le=5)
    attachment_ref: str = Field(min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    notes: str = ""

    @model_validator(mode="after")
    def check_catalog(self) -> "AssessmentCreate":
        validate_catalog(self.category, self.element)
        return self


class AssessmentPatch(BaseModel):
    """Partial update. id, owner_id and created_at are not patchable."""

    category: str | None = None
    element: str | None = None
    condition: int | None = Field(default=None, ge=1, le=5)
    priority: int | None = Field(default=None, ge=1, le=5)
    attachment_ref: str | None = Field(default=None, min_length=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    notes: str | None = None

    model_config = {"extra": "forbid"}

    @field_validator("category", "element", "condition", "priority", "attachment_ref", "notes")
    @classmethod
    def reject_explicit_null(cls, v):
        # Absent fields stay None; an explicit null is rejected.
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class AssessmentRead(BaseModel):
    id: str
    owner_id: str
    created_at: int
    latitude: float | None = None
    longitude: float | None = None
    category: str
    element: str
    condition: int
    priority: int
    attachment_ref: str
    notes: str = ""

    model_config = {"from_attributes": True}
