from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from kiwi_crm.domain.errors import NotFoundError, StorageError
from kiwi_crm.domain.models.crm import (
    Identity, LeadDetail, LeadView, NoteView, NoteWithLead,
    TaskStatus, TaskView, TaskWithLead, UserView,
)
from .tables import Lead, Note, Task, User

logger = structlog.get_logger(__name__)

PERSONAL_LEAD_NAME = "Personal"
PERSONAL_LEAD_ATTRIBUTES = {"description": "Default lead for personal tasks and reminders"}


class PersistenceGateway:
    """Typed CRUD over users, leads, tasks and notes.

    Every public method runs in its own session and commits atomically.
    Lead, task and note lookups are scoped to the owning user, so an entity
    belonging to someone else is reported as not found.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("Storage operation failed", operation=operation, error=str(e))
            raise StorageError(f"{operation} failed: {e}", detail=str(e)) from e

    # Users

    async def get_or_create_user(self, identity: Identity) -> UserView:
        """Return the user for an identity, creating it with a Personal lead on first login"""

        existing = await self._find_user(identity.subject)
        if existing:
            return existing

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    user = User(subject=identity.subject, email=identity.email, name=identity.name)
                    session.add(user)
                    session.add(Lead(
                        user=user,
                        name=PERSONAL_LEAD_NAME,
                        attributes=dict(PERSONAL_LEAD_ATTRIBUTES),
                    ))
                    await session.flush()
                    created = UserView.model_validate(user)
        except IntegrityError:
            # Concurrent first login for the same subject; the other request won
            existing = await self._find_user(identity.subject)
            if existing is None:
                raise StorageError("create user failed: conflicting insert")
            return existing
        except SQLAlchemyError as e:
            logger.error("Storage operation failed", operation="create user", error=str(e))
            raise StorageError(f"create user failed: {e}", detail=str(e)) from e

        logger.info("Created user with default lead", user_id=created.id)
        return created

    async def _find_user(self, subject: str) -> Optional[UserView]:
        async with self._transaction("get user") as session:
            user = await session.scalar(select(User).where(User.subject == subject))
            return UserView.model_validate(user) if user else None

    # Leads

    async def create_lead(self, user_id: str, name: str, attributes: Optional[Dict[str, Any]] = None) -> LeadView:
        """Create a lead; duplicate names are allowed"""

        async with self._transaction("create lead") as session:
            lead = Lead(user_id=user_id, name=name, attributes=dict(attributes or {}))
            session.add(lead)
            await session.flush()
            return LeadView.model_validate(lead)

    async def get_lead(self, lead_id: str, user_id: str) -> LeadDetail:
        """Get a lead with its tasks and notes"""

        async with self._transaction("get lead") as session:
            lead = await self._load_lead(session, lead_id, user_id, with_children=True)
            return LeadDetail.model_validate(lead)

    async def list_leads_by_user(self, user_id: str) -> List[LeadDetail]:
        """All leads of a user, most recently updated first"""

        async with self._transaction("list leads") as session:
            result = await session.scalars(
                select(Lead)
                .where(Lead.user_id == user_id)
                .options(selectinload(Lead.tasks), selectinload(Lead.notes))
                .order_by(Lead.updated_at.desc())
            )
            return [LeadDetail.model_validate(lead) for lead in result]

    async def update_lead(
        self,
        lead_id: str,
        user_id: str,
        name: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> LeadView:
        """Rename a lead and/or replace its attributes"""

        async with self._transaction("update lead") as session:
            lead = await self._load_lead(session, lead_id, user_id)
            if name is not None:
                lead.name = name
            if attributes is not None:
                lead.attributes = dict(attributes)
            await session.flush()
            return LeadView.model_validate(lead)

    async def delete_lead(self, lead_id: str, user_id: str) -> None:
        """Delete a lead together with all of its tasks and notes"""

        async with self._transaction("delete lead") as session:
            lead = await self._load_lead(session, lead_id, user_id, with_children=True)
            await session.delete(lead)

        logger.info("Deleted lead", lead_id=lead_id)

    async def _load_lead(
        self,
        session: AsyncSession,
        lead_id: str,
        user_id: str,
        with_children: bool = False,
    ) -> Lead:
        query = select(Lead).where(Lead.id == lead_id, Lead.user_id == user_id)
        if with_children:
            query = query.options(selectinload(Lead.tasks), selectinload(Lead.notes))
        lead = await session.scalar(query)
        if lead is None:
            raise NotFoundError("Lead", lead_id)
        return lead

    # Tasks

    async def create_task(self, user_id: str, lead_id: str, title: str, deadline: datetime) -> TaskWithLead:
        """Create a task on one of the user's leads; status always starts as pending"""

        async with self._transaction("create task") as session:
            lead = await self._load_lead(session, lead_id, user_id)
            task = Task(lead=lead, title=title, deadline=deadline, status=TaskStatus.PENDING)
            session.add(task)
            await session.flush()
            return TaskWithLead.model_validate(task)

    async def update_task(
        self,
        task_id: str,
        user_id: str,
        title: Optional[str] = None,
        deadline: Optional[datetime] = None,
        status: Optional[TaskStatus] = None,
    ) -> TaskView:
        """Update any of title, deadline and status"""

        async with self._transaction("update task") as session:
            task = await self._load_task(session, task_id, user_id)
            if title is not None:
                task.title = title
            if deadline is not None:
                task.deadline = deadline
            if status is not None:
                task.set_status(status)
            await session.flush()
            return TaskView.model_validate(task)

    async def update_task_status(self, task_id: str, user_id: str, status: TaskStatus) -> TaskView:
        """Move a task to a new status, stamping or clearing completed_at"""

        async with self._transaction("update task status") as session:
            task = await self._load_task(session, task_id, user_id)
            task.set_status(status)
            await session.flush()
            return TaskView.model_validate(task)

    async def delete_task(self, task_id: str, user_id: str) -> None:
        async with self._transaction("delete task") as session:
            task = await self._load_task(session, task_id, user_id)
            await session.delete(task)

    async def list_tasks_due_in_window(
        self,
        user_id: str,
        end: datetime,
        start: Optional[datetime] = None,
    ) -> List[TaskWithLead]:
        """Open tasks with start <= deadline < end, earliest first.

        Without a start the window is open-ended into the past.
        """

        query = (
            select(Task)
            .join(Task.lead)
            .where(
                Lead.user_id == user_id,
                Task.status != TaskStatus.COMPLETED,
                Task.deadline < end,
            )
            .options(selectinload(Task.lead))
            .order_by(Task.deadline.asc())
        )
        if start is not None:
            query = query.where(Task.deadline >= start)

        async with self._transaction("list tasks in window") as session:
            result = await session.scalars(query)
            return [TaskWithLead.model_validate(task) for task in result]

    async def _load_task(self, session: AsyncSession, task_id: str, user_id: str) -> Task:
        task = await session.scalar(
            select(Task).join(Task.lead).where(Task.id == task_id, Lead.user_id == user_id)
        )
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    # Notes

    async def create_note(self, user_id: str, lead_id: str, content: str) -> NoteWithLead:
        """Attach a note to one of the user's leads"""

        async with self._transaction("create note") as session:
            lead = await self._load_lead(session, lead_id, user_id)
            note = Note(lead=lead, content=content)
            session.add(note)
            await session.flush()
            return NoteWithLead.model_validate(note)

    async def update_note(self, note_id: str, user_id: str, content: str) -> NoteView:
        """Replace a note's content; its creation time never changes"""

        async with self._transaction("update note") as session:
            note = await self._load_note(session, note_id, user_id)
            note.content = content
            await session.flush()
            return NoteView.model_validate(note)

    async def delete_note(self, note_id: str, user_id: str) -> None:
        async with self._transaction("delete note") as session:
            note = await self._load_note(session, note_id, user_id)
            await session.delete(note)

    async def _load_note(self, session: AsyncSession, note_id: str, user_id: str) -> Note:
        note = await session.scalar(
            select(Note).join(Note.lead).where(Note.id == note_id, Lead.user_id == user_id)
        )
        if note is None:
            raise NotFoundError("Note", note_id)
        return note
