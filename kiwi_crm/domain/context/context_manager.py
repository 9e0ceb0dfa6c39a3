from typing import Optional, Tuple
import asyncio
import structlog
from datetime import datetime, timedelta

from kiwi_crm.domain.models.crm import UserContext
from kiwi_crm.infrastructure.database.gateway import PersistenceGateway

logger = structlog.get_logger(__name__)


def day_window(now: datetime) -> Tuple[datetime, datetime]:
    """Return [midnight today, midnight tomorrow) for the given wall-clock time"""

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight, midnight + timedelta(days=1)


class ContextManager:
    """Assembles the per-request CRM snapshot handed to the prompt and the dashboard"""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    async def build_context(self, user_id: str, now: Optional[datetime] = None) -> UserContext:
        """Gather leads, today's tasks and overdue tasks for a user.

        The three reads are independent and not wrapped in one transaction,
        so a write landing mid-assembly can show up in one list and not in
        another.
        """

        now = now or datetime.now()
        midnight, next_midnight = day_window(now)

        logger.info("Building context", user_id=user_id)

        leads, todays_tasks, overdue_tasks = await asyncio.gather(
            self.gateway.list_leads_by_user(user_id),
            self.gateway.list_tasks_due_in_window(user_id, end=next_midnight, start=midnight),
            self.gateway.list_tasks_due_in_window(user_id, end=midnight),
        )

        logger.debug(
            "Context assembled",
            user_id=user_id,
            leads=len(leads),
            todays_tasks=len(todays_tasks),
            overdue_tasks=len(overdue_tasks),
        )

        return UserContext(
            leads=leads,
            todays_tasks=todays_tasks,
            overdue_tasks=overdue_tasks,
        )
