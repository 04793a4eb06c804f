"""Health check endpoint with database (session store) connectivity check."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk_auth.core.config import settings
from helpdesk_auth.core.database import check_db_connected, get_db
from helpdesk_auth.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health and whether the session store is reachable.
    Logins and token validation fail with 503 while it is disconnected.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
    )
