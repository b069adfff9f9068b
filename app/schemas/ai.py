"""Pydantic schemas for AI text generation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Any = Field(default=None, description="Instruction text (2-10000 chars after trimming).")
    context: Any = Field(default=None, description="Optional background, cut to 5000 chars.")
    max_tokens: Any = Field(default=None, alias="maxTokens", description="Output cap, at most 4096.")


class GenerateResponse(BaseModel):
    success: bool
    text: str
    model: str


class AIHealthResponse(BaseModel):
    status: Literal["configured", "not_configured"]
    model: str
