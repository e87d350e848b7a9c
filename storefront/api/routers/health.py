from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.deps import get_revocation_registry
from storefront.data.database import get_db
from storefront.services.revocation_registry import RevocationRegistry

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), registry: RevocationRegistry = Depends(get_revocation_registry)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "unavailable"

    redis_status = "ok" if registry.ping() else "unavailable"
    ok = database == "ok" and redis_status == "ok"

    return {
        "success": ok,
        "status": "ok" if ok else "degraded",
        "database": database,
        "redis": redis_status,
    }
