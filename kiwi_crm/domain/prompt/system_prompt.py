"""
System prompt compilation.

Everything here is a pure function of its inputs: the same snapshot, user name
and timestamp always render the same text.
"""

import json
from datetime import datetime
from typing import List, Optional

from kiwi_crm.domain.models.crm import LeadDetail, UserContext
from . import policy


def format_date(value: datetime) -> str:
    """Bare ISO date, e.g. 2026-10-19"""
    return value.date().isoformat()


def format_full_datetime(value: datetime) -> str:
    """Long form, e.g. Monday, October 19, 2026 at 3:05 PM"""

    hour12 = value.hour % 12 or 12
    meridiem = "PM" if value.hour >= 12 else "AM"
    return (
        f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year} "
        f"at {hour12}:{value.minute:02d} {meridiem}"
    )


def _format_lead(lead: LeadDetail) -> str:
    lines = [f'Lead: "{lead.name}" (ID: {lead.id})']

    if lead.attributes:
        attributes = json.dumps(lead.attributes, separators=(",", ":"), ensure_ascii=False, default=str)
        lines.append(f"  Attributes: {attributes}")

    if lead.tasks:
        lines.append("  Tasks:")
        lines.extend(
            f"    - {task.title} [{task.status.value}] (Due: {format_date(task.deadline)}) (Task ID: {task.id})"
            for task in lead.tasks
        )
    else:
        lines.append("  Tasks: None")

    if lead.notes:
        lines.append("  Notes:")
        lines.extend(
            f"    - [{format_date(note.created_at)}] {note.content}"
            for note in lead.notes
        )
    else:
        lines.append("  Notes: None")

    return "\n".join(lines)


def format_user_data(context: UserContext) -> str:
    """Render every lead with its IDs, tasks and notes"""

    if not context.leads:
        return policy.NO_LEADS_MESSAGE

    return "\n\n".join(_format_lead(lead) for lead in context.leads)


def compile_welcome_summary(context: UserContext) -> str:
    """Overdue and today's tasks, or the all-caught-up line"""

    parts: List[str] = []

    if context.overdue_tasks:
        lines = "\n".join(
            f'- "{task.title}" for {task.lead.name} (was due {format_date(task.deadline)})'
            for task in context.overdue_tasks
        )
        parts.append(f"**Overdue Tasks ({len(context.overdue_tasks)}):**\n{lines}")

    if context.todays_tasks:
        lines = "\n".join(
            f'- "{task.title}" for {task.lead.name}'
            for task in context.todays_tasks
        )
        parts.append(f"**Today's Tasks ({len(context.todays_tasks)}):**\n{lines}")

    if not parts:
        return policy.ALL_CAUGHT_UP_MESSAGE

    return "\n\n".join(parts)


def compile_system_prompt(
    context: UserContext,
    user_name: Optional[str],
    current_datetime: datetime,
) -> str:
    """Build the system prompt for one chat request"""

    user_line = f"The user's name is {user_name}." if user_name else policy.NO_USER_NAME_MESSAGE

    sections = [
        policy.ASSISTANT_INTRO,
        "\n".join([
            "## Current Date and Time",
            f"**Full:** {format_full_datetime(current_datetime)}",
            f"**Date:** {format_date(current_datetime)}",
            f"**Day:** {current_datetime.strftime('%A')}",
            f"**Year:** {current_datetime.year}",
            f"**Month:** {current_datetime.strftime('%B')}",
        ]),
        policy.RELATIVE_DATE_HINT,
        f"## User Information\n{user_line}",
        policy.CAPABILITIES,
        policy.IMPORTANT_RULES,
        f"## Current Summary\n{compile_welcome_summary(context)}",
        f"## All Your Leads and Data\n{format_user_data(context)}",
        policy.CONVERSATION_GUIDELINES,
    ]

    return "\n\n".join(sections)
