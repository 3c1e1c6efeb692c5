"""Saved query (card) entity returned by the saved-query store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SavedQuery(BaseModel):
    """A previously saved query, governed by the collection it belongs to."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int = Field(..., description="Saved query identifier.")
    collection_id: int | None = Field(
        default=None,
        description="Owning collection; ``None`` means the root collection.",
    )
    name: str = Field(default="", description="Display name.")
    database_id: int | None = Field(default=None, description="Database the query runs against.")
