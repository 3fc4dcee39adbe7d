"""Pydantic model for the movie record shown on the detail view."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moviedetail.models.common import RecordID, coerce_identifier


class MovieRecord(BaseModel):
    """A single movie as returned by the backend.

    The backend uses its own column names (``name``, ``image_poster``,
    ``rated``, ``release_year``); those are accepted as aliases while the
    Python side reads the descriptive attribute names.  Instances are frozen:
    a re-fetch replaces the record wholesale.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: RecordID
    title: str = Field(..., alias="name")
    genre: Optional[str] = None
    summary: str = ""
    rating: Optional[float] = None
    poster: Optional[str] = Field(default=None, alias="image_poster")
    trailer: Optional[str] = None
    director: Optional[str] = None
    cast: Optional[Union[List[str], str]] = None
    release_date: Optional[Union[int, str]] = Field(default=None, alias="release_year")
    duration: Optional[Union[int, str]] = None
    content_rating: Optional[str] = Field(default=None, alias="rated")
    language: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):  # noqa: N805
        return coerce_identifier(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _none_summary(cls, value):  # noqa: N805
        return "" if value is None else value


__all__ = ["MovieRecord"]
