"""Pydantic models for the audience rating domain."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from moviedetail.core.config import settings

RatingValue = float


def coerce_average_rating(value: Any) -> Optional[float]:
    """Interpret an ``averageRating`` value sent by the backend.

    ``None``, empty strings and zero mean "no rating provided".  Anything
    else is converted to a float, and values that are not numeric collapse
    to ``0.0``.
    """

    if value is None or value == "" or value is False:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    if number == 0:
        return None
    return number


class RatingSubmitRequest(BaseModel):
    rating: RatingValue = Field(
        ...,
        ge=settings.RATING_MIN,
        le=settings.RATING_MAX,
        description="Rating value on the detail view scale",
    )


class AggregateRatingResponse(BaseModel):
    """Backend answer to a rating submission."""

    averageRating: float = 0.0

    @field_validator("averageRating", mode="before")
    @classmethod
    def _coerce(cls, value):  # noqa: N805
        return coerce_average_rating(value) or 0.0


__all__ = [
    "RatingValue",
    "RatingSubmitRequest",
    "AggregateRatingResponse",
    "coerce_average_rating",
]
