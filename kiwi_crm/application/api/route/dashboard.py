from fastapi import APIRouter

from kiwi_crm.application.api.dependencies import CurrentUser, GatewayDep
from kiwi_crm.domain.context.context_manager import ContextManager
from kiwi_crm.domain.models.crm import UserContext

router = APIRouter()


@router.get("/dashboard", response_model=UserContext)
async def dashboard_endpoint(user: CurrentUser, gateway: GatewayDep):
    """Leads with their tasks and notes, plus today's and overdue tasks"""
    return await ContextManager(gateway).build_context(user.id)
