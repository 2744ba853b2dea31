"""Request models for the HTTP boundary.

Validation of client input lives here, not in the stores: a store's ``add``
assumes a structurally valid annotation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ValidationError

from annostore.core.exceptions import InvalidAnnotationError
from annostore.models import Annotation


class AnnotationIn(BaseModel):
    """Body of ``PUT /annotations``."""

    created_at: int | None = Field(default=None, ge=0, description="Unix seconds; defaults to receipt time")
    message: str = Field(..., min_length=1)
    tags: list[str] = Field(..., min_length=1)

    def to_annotation(self, now: int) -> Annotation:
        return Annotation(created_at=self.created_at or now, message=self.message, tags=list(self.tags))


def parse_annotation(body: bytes, now: int) -> Annotation:
    """Decode and validate a PUT body.

    Raises:
        InvalidAnnotationError: on malformed JSON or a missing/empty field.
    """
    try:
        return AnnotationIn.model_validate_json(body).to_annotation(now)
    except ValidationError as e:
        raise InvalidAnnotationError(str(e)) from e
