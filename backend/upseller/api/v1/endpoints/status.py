"""
Status and health check endpoints.

WHAT: Health monitoring for the LLM provider and calendar backend
WHY: Quick diagnostics for the web UI and ops
HOW: FastAPI endpoints calling provider ping and reading app state
"""

from fastapi import APIRouter, Depends

from ...deps import get_state
from ....core.state import AppState
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/llm/status")
async def llm_status(state: AppState = Depends(get_state)):
    """
    Check LLM provider status.

    WHAT: Health of the configured LLM provider
    WHY: UI can show whether replies come from the LLM or rules
    HOW: Call provider.ping(); rules-only setups report disabled

    Returns:
        JSON with provider name, availability and negotiation strategy
    """
    provider = state.llm_provider
    if provider is None:
        return {
            "provider": state.config.LLM_PROVIDER,
            "available": False,
            "strategy": "rules",
            "base_url": None,
            "models": None,
            "error": "LLM disabled; using rule-based replies",
        }

    try:
        llm = await provider.ping()
        llm_dict = {
            "available": llm.available,
            "base_url": llm.base_url,
            "models": llm.models,
            "error": llm.error,
        }
    except Exception as e:
        logger.error(f"Failed to get LLM status: {e}")
        llm_dict = {"available": False, "base_url": "unknown", "models": None, "error": str(e)}

    return {
        "provider": state.config.LLM_PROVIDER,
        "strategy": "llm+rules",
        "fallbacks": state.engine.fallback_count,
        **llm_dict,
    }


@router.get("/health")
async def health_check(state: AppState = Depends(get_state)):
    """
    Overall application health check.

    Returns:
        JSON with app metadata, mode and component summary
    """
    return {
        "ok": True,
        "status": "healthy",
        "version": state.config.APP_VERSION,
        "app_name": state.config.APP_NAME,
        "mode": state.mode,
        "components": {
            "llm": {
                "provider": state.config.LLM_PROVIDER,
                "enabled": state.llm_provider is not None,
            },
            "calendar": {
                "provider": state.calendar.name,
            },
            "listings": len(state.listings),
            "appointments": len(state.appointments.all()),
        },
    }
