from fastapi import APIRouter

from kiwi_crm.application.api.dependencies import CurrentUser, GatewayDep
from kiwi_crm.application.api.schema.requests import CreateNoteRequest, DeleteResponse, UpdateNoteRequest
from kiwi_crm.domain.models.crm import NoteView, NoteWithLead

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", response_model=NoteWithLead)
async def create_note(body: CreateNoteRequest, user: CurrentUser, gateway: GatewayDep):
    return await gateway.create_note(user.id, body.lead_id, body.content)


@router.patch("/{note_id}", response_model=NoteView)
async def update_note(note_id: str, body: UpdateNoteRequest, user: CurrentUser, gateway: GatewayDep):
    return await gateway.update_note(note_id, user.id, body.content)


@router.delete("/{note_id}", response_model=DeleteResponse)
async def delete_note(note_id: str, user: CurrentUser, gateway: GatewayDep):
    await gateway.delete_note(note_id, user.id)
    return DeleteResponse()
