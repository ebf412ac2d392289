from fastapi import APIRouter, Depends
from typing import Dict, Any
from ..providers.debank import DebankProvider, get_debank_provider

router = APIRouter()


@router.get("/healthz")
async def health_check(
    debank: DebankProvider = Depends(get_debank_provider),
) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status = {"debank": await debank.health_check()}

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if available_providers == len(provider_status) else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status)
    }
