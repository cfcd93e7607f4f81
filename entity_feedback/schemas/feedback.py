"""Pydantic schemas for the entity feedback API.

Field names are snake_case in Python and camelCase on the wire
(``entityRef``, ``userRef``, ``entityTitle``), matching the catalog's
JSON conventions.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting either casing."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Stored rows
# ============================================================================


class Rating(CamelModel):
    """A stored rating row."""

    entity_ref: str
    user_ref: str
    rating: str
    timestamp: Optional[datetime] = None


class Response(CamelModel):
    """A stored response row."""

    entity_ref: str
    user_ref: str
    response: Optional[str] = None
    comments: Optional[str] = None
    consent: bool = True
    timestamp: Optional[datetime] = None


class RatingAggregate(CamelModel):
    """Count of one rating value for one entity."""

    entity_ref: str
    rating: str
    count: int


class EntityRatingsData(CamelModel):
    """Per-entity rating summary returned by GET /ratings."""

    entity_ref: str
    entity_title: Optional[str] = None
    ratings: Dict[str, int] = Field(default_factory=dict)


# ============================================================================
# Request bodies
# ============================================================================


class RatingSubmission(BaseModel):
    """Request schema for POST /ratings/{entityRef}.

    ``rating`` is optional here; the service rejects falsy
    values with an InputError naming the missing field.
    """

    rating: Optional[Union[str, int, float, bool]] = Field(
        default=None,
        description="Rating value, e.g. LIKE / DISLIKE or 1..5",
        examples=["LIKE", 5],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [{"rating": "LIKE"}]
        }
    }


class ResponseSubmission(BaseModel):
    """Request schema for POST /responses/{entityRef}."""

    response: Optional[str] = Field(
        default=None,
        description="Comma-separated response options chosen by the user",
        examples=["incorrect,missing"],
    )

    comments: Optional[str] = Field(
        default=None,
        description="Serialized JSON object with free-text comments",
        examples=['{"additionalComments": "Docs link is broken"}'],
    )

    consent: Optional[bool] = Field(
        default=True,
        description="Whether the user consents to being contacted",
    )

    @field_validator("comments", mode="before")
    @classmethod
    def serialize_structured_comments(cls, v: Any) -> Any:
        """Accept a JSON object for comments and store it serialized."""
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v


# ============================================================================
# Errors
# ============================================================================


class FieldError(BaseModel):
    """Individual field validation error."""

    field: str = Field(..., description="Field name that failed validation")
    message: str = Field(..., description="Error message describing the validation failure")


class ErrorResponse(BaseModel):
    """Response schema for error cases."""

    status: str = Field(
        ...,
        pattern="^error$",
        description="Always 'error' for error responses",
        examples=["error"],
    )

    error: str = Field(
        ...,
        description="Error message",
        examples=["Can't save rating because there is not enough info"],
    )

    code: Optional[str] = Field(
        default=None,
        description="Machine-readable error code",
        examples=["INPUT_001"],
    )

    details: Optional[Union[List[FieldError], Dict[str, Any]]] = Field(
        default=None,
        description="Field errors (400) or additional context",
    )
