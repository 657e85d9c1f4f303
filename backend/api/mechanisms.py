"""
Mechanisms API Endpoints
NIH/SBIR/STTR mechanism rule tables: sections, page limits and attachments.
"""
from typing import Any, Dict

from fastapi import APIRouter

from backend.core.exceptions import NotFoundError
from backend.services.mechanisms import NIH_FORMATTING, get_mechanism, list_mechanisms

router = APIRouter(prefix="/api/mechanisms", tags=["Mechanisms"])


@router.get("")
async def get_mechanisms() -> Dict[str, Any]:
    """List every supported mechanism with its NIH formatting rules."""
    return {
        "mechanisms": [m.to_dict() for m in list_mechanisms()],
        "formatting": NIH_FORMATTING,
    }


@router.get("/{mechanism_id}")
async def get_mechanism_detail(mechanism_id: str) -> Dict[str, Any]:
    """Sections and attachments for one mechanism."""
    config = get_mechanism(mechanism_id)
    if config is None:
        raise NotFoundError("Mechanism", mechanism_id)
    return config.to_dict()
