"""
Integration API Routes.

Discovery endpoints listing the integrations and actions nodes can use.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from aion.api.dependencies import get_registry
from aion.api.schemas import ErrorResponse, IntegrationInfo, IntegrationListResponse
from aion.integrations.registry import ActionRegistry


router = APIRouter(prefix="/integrations", tags=["Integrations"])


@router.get("", response_model=IntegrationListResponse)
async def list_integrations(
    category: Optional[str] = None,
    registry: ActionRegistry = Depends(get_registry),
) -> IntegrationListResponse:
    """
    List registered integrations.

    Pass ``category`` (ai, social, logic, api, data) to filter.
    """
    if category:
        integrations = registry.get_integrations_by_category(category)
    else:
        integrations = registry.get_all_integrations()

    infos = [IntegrationInfo(**i.to_dict()) for i in integrations]
    return IntegrationListResponse(integrations=infos, total=len(infos))


@router.get(
    "/{integration_id}",
    response_model=IntegrationInfo,
    responses={404: {"model": ErrorResponse}},
)
async def get_integration(
    integration_id: str,
    registry: ActionRegistry = Depends(get_registry),
) -> IntegrationInfo:
    """Get an integration with its actions and their config schemas."""
    integration = registry.get_integration(integration_id)
    if integration is None:
        raise HTTPException(status_code=404, detail=f"Integration '{integration_id}' not found")
    return IntegrationInfo(**integration.to_dict())
