# api.py
# REST surface over the repository:
#   GET/POST /api/work-days, GET/POST /api/settings, GET /api/ping
# Run: uvicorn api:create_app --factory

from typing import Any, Dict, List

from fastapi import APIRouter, Body, FastAPI, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from config import DB_URL
from domain import DayRecord
from logger import get_logger
from repository import WorkDayRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["work-days"])


def _repo(request: Request) -> WorkDayRepository:
    return request.app.state.repo


@router.get("/work-days")
def get_work_days(request: Request) -> List[Dict[str, Any]]:
    try:
        return [r.to_dict() for r in _repo(request).list_all()]
    except SQLAlchemyError:
        logger.exception("Listing work days failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage error")


@router.post("/work-days")
def save_work_days(request: Request, payload: List[Dict[str, Any]] = Body(...)) -> Dict[str, Any]:
    records = DayRecord.from_dicts(payload)
    try:
        count = _repo(request).replace_all(records)
    except SQLAlchemyError:
        logger.exception("Saving work days failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage error")
    return {"success": True, "count": count}


@router.get("/settings")
def get_settings(request: Request) -> Dict[str, Any]:
    try:
        return _repo(request).get_settings()
    except SQLAlchemyError:
        logger.exception("Loading settings failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage error")


@router.post("/settings")
def save_settings(request: Request, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        return _repo(request).save_settings(payload)
    except SQLAlchemyError:
        logger.exception("Saving settings failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage error")


@router.get("/ping")
def ping(request: Request) -> Dict[str, Any]:
    return {"status": "ok", "dbConnected": _repo(request).ping()}


def create_app(repo: WorkDayRepository | None = None) -> FastAPI:
    application = FastAPI(title="Controle de Horas API")
    application.state.repo = repo or WorkDayRepository(DB_URL)
    application.include_router(router)
    return application
