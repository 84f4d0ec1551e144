# aidetect/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from aidetect.core.config import settings
from aidetect.db.session import get_db

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def liveness_probe():
    return {"status": "ok"}


@router.get("/db")
def db_health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok"}


@router.get("/detection")
def detection_health():
    # configuration only, no call to the detection service
    return {
        "status": "ok" if settings.DETECTION_ENABLED else "disabled",
        "configured": bool(settings.DETECTION_API_KEY),
    }
