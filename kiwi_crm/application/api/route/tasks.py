from fastapi import APIRouter

from kiwi_crm.application.api.dependencies import CurrentUser, GatewayDep
from kiwi_crm.application.api.schema.requests import CreateTaskRequest, DeleteResponse, UpdateTaskRequest
from kiwi_crm.domain.models.crm import TaskView, TaskWithLead, parse_deadline

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskWithLead)
async def create_task(body: CreateTaskRequest, user: CurrentUser, gateway: GatewayDep):
    """Create a task on one of the caller's leads; it always starts pending"""
    return await gateway.create_task(user.id, body.lead_id, body.title, parse_deadline(body.deadline))


@router.patch("/{task_id}", response_model=TaskView)
async def update_task(task_id: str, body: UpdateTaskRequest, user: CurrentUser, gateway: GatewayDep):
    return await gateway.update_task(
        task_id,
        user.id,
        title=body.title,
        deadline=parse_deadline(body.deadline) if body.deadline is not None else None,
        status=body.status,
    )


@router.delete("/{task_id}", response_model=DeleteResponse)
async def delete_task(task_id: str, user: CurrentUser, gateway: GatewayDep):
    await gateway.delete_task(task_id, user.id)
    return DeleteResponse()
