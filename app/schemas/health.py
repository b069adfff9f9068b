"""Pydantic schemas for the service health check."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    payments: bool
    email: bool
    sms: bool
    ai: bool
    news: bool
    store: bool = Field(..., description="True when Supabase is configured (not the in-memory store).")


class AuthStatus(BaseModel):
    configured: bool
    demo_mode: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    services: ServiceStatus
    auth: AuthStatus
