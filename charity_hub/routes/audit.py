from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine

from charity_hub.db.readers.audit import list_audit_logs
from charity_hub.dependencies import get_db_engine, require_admin
from charity_hub.utils.serialize import serialize_row

router = APIRouter()


@router.get("/admin/audit-logs")
def get_audit_logs(
    entity_type: Optional[str] = Query(None, description="e.g. VolunteerApplication, User, Shift"),
    limit: int = Query(100, ge=1, le=1000),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_audit_logs(conn, entity_type=entity_type, limit=limit)
    return {"audit_logs": [serialize_row(r) for r in rows], "total": len(rows)}
