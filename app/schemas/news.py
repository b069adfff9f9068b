"""Pydantic schemas for the headlines feed."""

from __future__ import annotations

from pydantic import BaseModel


class NewsArticle(BaseModel):
    id: str
    headline: str
    description: str
    source: str
    url: str | None = None
    publishedAt: str | None = None


class HeadlinesResponse(BaseModel):
    articles: list[NewsArticle]
