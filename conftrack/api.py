"""FastAPI application exposing the conference tracker."""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from loguru import logger
from pydantic import BaseModel

from . import __version__
from .config import settings
from .errors import StorageError
from .scheduler.models import Subscription
from .scheduler.schedule import days_until, parse_date
from .services.tracker import ConferenceNotFound, ConferenceTracker, build_tracker

logger = logger.bind(module="conftrack.api")


# ============== Schemas ==============

class SubscriptionIn(BaseModel):
    """Either a full subscription, or ``conference_id`` + ``year`` to look up."""
    year: int
    id: Optional[str] = None
    title: Optional[str] = None
    deadline: Optional[str] = None
    date: Optional[str] = None
    conference_id: Optional[str] = None


class SubscriptionOut(BaseModel):
    id: str
    title: str
    year: int
    deadline: str
    date: str
    days_to_deadline: Optional[int] = None
    days_to_conference: Optional[int] = None


class SubscribeResponse(BaseModel):
    subscription: SubscriptionOut
    replaced: bool
    notified: bool
    outcome: dict[str, Any]


class UnsubscribeResponse(BaseModel):
    subscription_id: str
    removed: bool
    outcome: dict[str, Any]


class StoragePath(BaseModel):
    path: str


def _days(value: str, now: datetime) -> Optional[int]:
    try:
        return days_until(parse_date(value), now)
    except ValueError:
        return None


def _to_out(sub: Subscription, now: datetime) -> SubscriptionOut:
    return SubscriptionOut(
        **sub.to_dict(),
        days_to_deadline=_days(sub.deadline, now),
        days_to_conference=_days(sub.date, now),
    )


def _tracker(request: Request) -> ConferenceTracker:
    return request.app.state.tracker


# ============== Routes ==============

router = APIRouter()


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/conferences")
async def list_conferences(request: Request, refresh: bool = False) -> list[dict[str, Any]]:
    records = await _tracker(request).conferences(refresh=refresh)
    return [r.to_dict() for r in records]


@router.get("/subscriptions", response_model=list[SubscriptionOut])
async def list_subscriptions(request: Request) -> list[SubscriptionOut]:
    tracker = _tracker(request)
    now = tracker.host.clock.now()
    return [_to_out(s, now) for s in await tracker.list_subscriptions()]


@router.post("/subscriptions", response_model=SubscribeResponse)
async def subscribe(request: Request, body: SubscriptionIn) -> SubscribeResponse:
    tracker = _tracker(request)
    try:
        if body.conference_id:
            result = await tracker.subscribe_instance(body.conference_id, body.year)
        else:
            if not body.title or not body.deadline or not body.date:
                raise HTTPException(
                    status_code=422,
                    detail="title, deadline and date are required without conference_id",
                )
            sub = Subscription(
                id=Subscription.make_id(body.title, body.year, body.id),
                title=body.title,
                year=body.year,
                deadline=body.deadline,
                date=body.date,
            )
            result = await tracker.subscribe(sub)
    except ConferenceNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        logger.error(f"Subscribe failed: {e}")
        raise HTTPException(status_code=503, detail="Subscription could not be saved") from e

    return SubscribeResponse(
        subscription=_to_out(result.subscription, tracker.host.clock.now()),
        replaced=result.replaced,
        notified=result.notified,
        outcome=result.outcome.to_dict(),
    )


@router.delete("/subscriptions/{subscription_id}", response_model=UnsubscribeResponse)
async def unsubscribe(request: Request, subscription_id: str) -> UnsubscribeResponse:
    try:
        result = await _tracker(request).unsubscribe(subscription_id)
    except StorageError as e:
        logger.error(f"Unsubscribe failed: {e}")
        raise HTTPException(status_code=503, detail="Unsubscribe could not be saved") from e
    return UnsubscribeResponse(
        subscription_id=result.subscription_id,
        removed=result.removed,
        outcome=result.outcome.to_dict(),
    )


@router.get("/preferences/storage-path", response_model=StoragePath)
async def get_storage_path(request: Request) -> StoragePath:
    return StoragePath(path=await _tracker(request).preferences.load_storage_path())


@router.put("/preferences/storage-path", response_model=StoragePath)
async def set_storage_path(request: Request, body: StoragePath) -> StoragePath:
    try:
        await _tracker(request).preferences.save_storage_path(body.path)
    except StorageError as e:
        raise HTTPException(status_code=503, detail="Storage path could not be saved") from e
    return body


@router.post("/subscriptions/export", response_model=StoragePath)
async def export_subscriptions(request: Request) -> StoragePath:
    tracker = _tracker(request)
    target = tracker.preferences.storage_path or str(settings.data_dir)
    try:
        written = await tracker.subscriptions.export_yaml(target)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Export failed: {e}") from e
    return StoragePath(path=str(written))


# ============== App ==============

def create_app(tracker: Optional[ConferenceTracker] = None) -> FastAPI:
    """Build the app; the tracker is created (if not given) and started in the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.tracker = tracker or build_tracker()
        await app.state.tracker.start()
        try:
            yield
        finally:
            await app.state.tracker.stop()

    app = FastAPI(
        title="ConfTrack",
        version=__version__,
        description="Conference deadline tracking with subscription reminders.",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
