from fastapi import APIRouter

from kiwi_crm.application.api.dependencies import CurrentUser, GatewayDep
from kiwi_crm.application.api.schema.requests import CreateLeadRequest, DeleteResponse, UpdateLeadRequest
from kiwi_crm.domain.models.crm import LeadView

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("", response_model=LeadView)
async def create_lead(body: CreateLeadRequest, user: CurrentUser, gateway: GatewayDep):
    return await gateway.create_lead(user.id, body.name, body.attributes)


@router.patch("/{lead_id}", response_model=LeadView)
async def update_lead(lead_id: str, body: UpdateLeadRequest, user: CurrentUser, gateway: GatewayDep):
    return await gateway.update_lead(lead_id, user.id, name=body.name, attributes=body.attributes)


@router.delete("/{lead_id}", response_model=DeleteResponse)
async def delete_lead(lead_id: str, user: CurrentUser, gateway: GatewayDep):
    """Delete a lead and, with it, all of its tasks and notes"""
    await gateway.delete_lead(lead_id, user.id)
    return DeleteResponse()
