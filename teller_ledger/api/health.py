"""
Health check endpoint.

Used by load balancers and monitoring to verify the service
is running and can reach its database.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teller_ledger.config import get_settings
from teller_ledger.logging_config import get_logger
from teller_ledger.models.base import get_db

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

SERVICE_NAME = "teller-ledger"


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Return service health including database connectivity.

    A failed ``SELECT 1`` reports the service as degraded
    instead of failing the probe outright.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.warning("database health check failed: %s", e)
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": SERVICE_NAME,
        "environment": get_settings().ENVIRONMENT,
        "database": db_status,
    }
