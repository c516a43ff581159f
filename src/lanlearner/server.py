import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lanlearner.application.state import StateRepository
from lanlearner.consts import VERSION
from lanlearner.domain.errors import StorageQuotaExceeded
from lanlearner.domain.models import LearningItem, ReviewOutcome

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("lanlearner.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Lanlearner Server v{VERSION} starting up...")
    yield
    logger.info("Lanlearner Server shutting down...")


app = FastAPI(
    title="Lanlearner Server",
    description="Local HTTP daemon for the lanlearner study store.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_state_repository() -> StateRepository:
    """Repository over the configured store; overridden in tests."""
    from lanlearner.application.config import resolve_config
    from lanlearner.application.factory import get_repository

    return get_repository(resolve_config())


@app.exception_handler(StorageQuotaExceeded)
async def storage_full_handler(request: Request, exc: StorageQuotaExceeded):
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=507, content={"detail": str(exc)})


# ---------- Models ----------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ItemResponse(BaseModel):
    id: str
    kind: str
    label: str
    srs_stage: int
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    category_id: str | None = None
    master_id: str | None = None

    @classmethod
    def from_item(cls, item: LearningItem) -> "ItemResponse":
        return cls(
            id=item.id,
            kind=item.kind,
            label=item.label,
            srs_stage=item.srs_stage,
            next_review_at=item.next_review_at,
            last_reviewed_at=item.last_reviewed_at,
            category_id=getattr(item, "category_id", None),
            master_id=getattr(item, "master_id", None),
        )


class ReviewRequest(BaseModel):
    outcome: ReviewOutcome


class SyncResponse(BaseModel):
    status: str
    message: str
    copy_id: str | None = None
    target_category_id: str | None = None


class GraduationResponse(BaseModel):
    status: str
    message: str
    created_categories: list[str]


class RecycleBinEntryResponse(BaseModel):
    item: ItemResponse
    deleted_at: datetime


# ---------- Endpoints ----------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/items/due", response_model=list[ItemResponse])
def due_items(repo: StateRepository = Depends(get_state_repository)):
    from lanlearner.application.item_service import ItemService

    return [ItemResponse.from_item(i) for i in ItemService(repo).due_items()]


@app.post("/items/{item_id}/review", response_model=ItemResponse)
def review_item(
    item_id: str, req: ReviewRequest, repo: StateRepository = Depends(get_state_repository)
):
    from lanlearner.application.item_service import ItemService

    logger.info(f"Review via API: {item_id} {req.outcome.value}")
    item = ItemService(repo).review_item(item_id, req.outcome)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item '{item_id}' not found")
    return ItemResponse.from_item(item)


@app.post("/new-knowledge/points/{item_id}/sync", response_model=SyncResponse)
def sync_point(item_id: str, repo: StateRepository = Depends(get_state_repository)):
    """Copy a new-knowledge item into the main syllabus. Skips are reported, not errors."""
    from lanlearner.application.sync_service import SyncService

    result = SyncService(repo).sync_knowledge_point(item_id)
    return SyncResponse(
        status=result.status.value,
        message=result.message,
        copy_id=result.copy_id,
        target_category_id=result.target_category_id,
    )


@app.post("/new-knowledge/graduate", response_model=GraduationResponse)
def graduate(repo: StateRepository = Depends(get_state_repository)):
    from lanlearner.application.sync_service import SyncService

    result = SyncService(repo).graduate_top_level_categories()
    return GraduationResponse(
        status=result.status.value,
        message=result.message,
        created_categories=result.created_categories,
    )


@app.get("/recycle-bin", response_model=list[RecycleBinEntryResponse])
def recycle_bin(repo: StateRepository = Depends(get_state_repository)):
    from lanlearner.application.recycle_bin import RecycleBinService

    return [
        RecycleBinEntryResponse(item=ItemResponse.from_item(e.item), deleted_at=e.deleted_at)
        for e in RecycleBinService(repo).entries()
    ]


@app.post("/recycle-bin/{item_id}/restore", response_model=ItemResponse)
def restore(item_id: str, repo: StateRepository = Depends(get_state_repository)):
    from lanlearner.application.recycle_bin import RecycleBinService

    item = RecycleBinService(repo).restore(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"No recycle bin entry for '{item_id}'")
    return ItemResponse.from_item(item)
