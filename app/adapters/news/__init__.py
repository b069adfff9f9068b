"""News provider adapters."""

from app.adapters.news.newsapi_client import NewsAPIClient

__all__ = ["NewsAPIClient"]
