from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.adapters.llm.factory import is_llm_configured
from app.api.deps import get_ai_service
from app.core.auth import require_auth
from app.core.config import settings
from app.core.csrf import csrf_protect
from app.core.rate_limit import rate_limit
from app.schemas.ai import AIHealthResponse, GenerateRequest, GenerateResponse
from app.services.ai_service import AIService

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post(
    "/generate",
    response_model=GenerateResponse,
    dependencies=[Depends(require_auth), Depends(csrf_protect), Depends(rate_limit("ai"))],
)
async def generate_text(
    body: GenerateRequest,
    service: Annotated[AIService, Depends(get_ai_service)],
) -> dict[str, Any]:
    """Generate text (message drafts, summaries) from a prompt and optional context.

    Returns:
        ``{success, text, model}``.

    Raises:
        400 for a missing or too-short prompt, 401/429 for provider key or
        quota problems, 500 when generation fails, 503 when no provider key
        is configured.
    """
    return await service.generate(body.prompt, body.context, body.max_tokens)


@router.get("/health", response_model=AIHealthResponse)
def ai_health() -> dict[str, str]:
    return {
        "status": "configured" if is_llm_configured() else "not_configured",
        "model": settings.llm.model,
    }
