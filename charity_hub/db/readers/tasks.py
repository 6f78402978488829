from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from charity_hub.models.tasks import Task

tasks = Task.__table__


def get_task(conn: Connection, task_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(select(tasks).where(tasks.c.id == task_id)).mappings().fetchone()
    return dict(row) if row else None


def list_user_tasks(conn: Connection, user_id: int) -> list[dict[str, Any]]:
    """List tasks assigned to a user, soonest due first."""
    stmt = (
        select(tasks)
        .where(tasks.c.assigned_user_id == user_id)
        .order_by(tasks.c.due_date, tasks.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]
