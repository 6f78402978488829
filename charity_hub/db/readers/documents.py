from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from charity_hub.models.documents import Document

documents = Document.__table__


def get_document(conn: Connection, document_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(documents).where(documents.c.id == document_id)).mappings().fetchone()
    )
    return dict(row) if row else None


def list_user_documents(conn: Connection, owner_id: int) -> list[dict[str, Any]]:
    stmt = select(documents).where(documents.c.owner_id == owner_id).order_by(documents.c.id.desc())
    return [dict(row) for row in conn.execute(stmt).mappings()]
