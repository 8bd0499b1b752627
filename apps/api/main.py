from __future__ import annotations

import datetime as dt
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, Query, status
from pydantic import BaseModel

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore
from core.settings import get_settings
from toolkits.snapshots import SnapshotEngine

logger = logging.getLogger(__name__)


def _configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    count: int | None = None
    message: str | None = None


def _envelope(data: Any, message: str | None = None) -> ApiResponse:
    if isinstance(data, list):
        payload = [_to_json(item) for item in data]
        return ApiResponse(data=payload, count=len(payload), message=message)
    return ApiResponse(data=_to_json(data), message=message)


def _to_json(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return item


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    _configure_logging(settings.log_level)
    store = SqlAlchemySnapshotStore(settings.database_url)

    app.state.settings = settings
    app.state.store = store
    app.state.engine = SnapshotEngine.from_settings(store, store, settings)

    try:
        yield
    finally:
        store.close()


app = FastAPI(title="Fund Snapshot API", version="0.1.0", lifespan=lifespan)


def get_store() -> SqlAlchemySnapshotStore:
    return app.state.store


def get_engine() -> SnapshotEngine:
    return app.state.engine


StoreDep = Annotated[SqlAlchemySnapshotStore, Depends(get_store)]
EngineDep = Annotated[SnapshotEngine, Depends(get_engine)]


@app.get("/health", summary="Health check", status_code=status.HTTP_200_OK)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/funds/{fund_id}/snapshots", summary="Snapshot current holdings", status_code=status.HTTP_201_CREATED)
def create_snapshot(fund_id: str, engine: EngineDep) -> ApiResponse:
    snapshot = engine.builder.build_snapshot(fund_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No holdings found for fund {fund_id}")
    return _envelope(snapshot, message=f"Snapshot for {fund_id} on {snapshot.date.isoformat()}")


@app.get("/funds/{fund_id}/snapshots", summary="Snapshot history")
def read_snapshot_history(
    fund_id: str,
    engine: EngineDep,
    days: Annotated[int, Query(ge=1)] = 30,
) -> ApiResponse:
    return _envelope(engine.history.snapshot_history(fund_id, days))


@app.post("/funds/{fund_id}/changes/detect", summary="Detect and record daily changes")
def detect_changes(fund_id: str, engine: EngineDep) -> ApiResponse:
    changes = engine.detector.detect_and_persist_changes(fund_id)
    return _envelope(changes, message=f"Detected {len(changes)} changes for {fund_id}")


@app.get("/funds/{fund_id}/changes", summary="Change history")
def read_change_history(
    fund_id: str,
    engine: EngineDep,
    days: Annotated[int, Query(ge=1)] = 30,
) -> ApiResponse:
    return _envelope(engine.history.change_history(fund_id, days))


@app.get("/funds/{fund_id}/changes/latest", summary="Compare the two most recent snapshot days")
def read_latest_changes(fund_id: str, engine: EngineDep) -> ApiResponse:
    return _envelope(engine.detector.compare_snapshots(fund_id))


@app.get("/funds/{fund_id}/changes/compare", summary="Compare two snapshot days")
def compare_changes(
    fund_id: str,
    engine: EngineDep,
    from_date: dt.date | None = None,
    to_date: dt.date | None = None,
) -> ApiResponse:
    if from_date is not None and to_date is not None and from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_date must not be after to_date")
    return _envelope(engine.detector.compare_snapshots(fund_id, from_date, to_date))


@app.get("/changes/significant", summary="Medium and high significance changes across funds")
def read_significant_changes(
    engine: EngineDep,
    days: Annotated[int, Query(ge=1)] = 7,
) -> ApiResponse:
    return _envelope(engine.history.significant_changes(days))


@app.get("/funds/{fund_id}/holdings/{as_of}", summary="Holdings as of a day")
def read_holdings_as_of(fund_id: str, as_of: dt.date, engine: EngineDep) -> ApiResponse:
    return _envelope(engine.history.holdings_as_of(fund_id, as_of))


@app.get("/funds", summary="Funds with current holdings")
def read_funds(store: StoreDep) -> ApiResponse:
    return _envelope(store.list_fund_ids())
