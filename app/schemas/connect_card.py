"""Pydantic schemas for visitor connect cards."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConnectCardRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    church_id: Any = None
    first_name: Any = None
    last_name: Any = None
    email: str | None = None
    phone: str | None = None
    how_did_you_hear: str | None = None
    prayer_request: str | None = None
    interested_in: list[str] | None = Field(default=None, description="Ministry interests, stored as tags.")


class ConnectCardResponse(BaseModel):
    success: bool
    personId: str | None = None
    demo: bool = False
