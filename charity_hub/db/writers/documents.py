from __future__ import annotations

from typing import Any

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from charity_hub.models.documents import Document
from charity_hub.utils.datetime import utc_now

documents = Document.__table__


def insert_document(conn: Connection, values: dict[str, Any]) -> int:
    result = conn.execute(insert(documents).values({**values, "created_at": utc_now()}))
    return int(result.inserted_primary_key[0])
