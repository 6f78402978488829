from __future__ import annotations

from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.tasks import Task
from charity_hub.utils.datetime import utc_now

tasks = Task.__table__


def insert_task(conn: Connection, values: dict[str, Any]) -> int:
    now = utc_now()
    result = conn.execute(insert(tasks).values({**values, "created_at": now, "updated_at": now}))
    return int(result.inserted_primary_key[0])


def update_task(conn: Connection, task_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(tasks).where(tasks.c.id == task_id).values({**values, "updated_at": utc_now()})
    )
