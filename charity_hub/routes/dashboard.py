from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from charity_hub.dependencies import get_db_engine, require_admin, require_roles
from charity_hub.models.users import ROLE_VOLUNTEER
from charity_hub.services.dashboard import admin_dashboard_stats, volunteer_dashboard_stats

router = APIRouter()


@router.get("/volunteer/dashboard/stats")
def volunteer_stats(
    volunteer: dict[str, Any] = Depends(require_roles(ROLE_VOLUNTEER)),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Hours, reliability, level and milestone progress for the current volunteer.

    Recomputed from the full assignment history on every request.
    """
    with db_engine.connect() as conn:
        return volunteer_dashboard_stats(conn, volunteer["id"])


@router.get("/admin/dashboard/stats")
def admin_stats(
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, int]:
    with db_engine.connect() as conn:
        return admin_dashboard_stats(conn)
