"""HTTP API for driving the reminder engine."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from config.config import load_config
from notif.app.reminder_app import ReminderApp
from notif.models.reminder import Reminder
from notif.reminders.errors import ValidationError


class ReminderCreateRequest(BaseModel):
    text: str = Field(..., description="Reminder text")
    date: datetime = Field(..., description="Due time, ISO 8601")


class ReminderOut(BaseModel):
    id: str
    text: str
    date: datetime

    @classmethod
    def from_reminder(cls, reminder: Reminder) -> "ReminderOut":
        return cls(id=reminder.id, text=reminder.text, date=reminder.due_at)


class ReminderCreateResponse(BaseModel):
    reminder: ReminderOut
    persisted: bool
    scheduled: bool
    warnings: List[str] = Field(default_factory=list)


class FilteredViewResponse(BaseModel):
    query: str
    is_empty: bool
    reminders: List[ReminderOut]


class QueryRequest(BaseModel):
    query: str = Field(default="", description="Case-insensitive search text")


class RemovalResponse(BaseModel):
    removed: List[ReminderOut]
    nothing_to_remove: bool
    persisted: bool


class NotificationBatch(BaseModel):
    notifications: List[Dict[str, Any]]


def get_reminder_app(app: FastAPI) -> ReminderApp:
    reminder_app = getattr(app.state, "reminder_app", None)
    if reminder_app is None:
        raise RuntimeError("ReminderApp instance is not configured on the application state")
    return reminder_app


def create_app(reminder_app_instance: ReminderApp | None = None) -> FastAPI:
    reminder_app = reminder_app_instance or ReminderApp()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.reminder_app = reminder_app
        await reminder_app.startup()
        try:
            yield
        finally:
            await reminder_app.shutdown()

    app = FastAPI(
        title="notif API",
        version="1.0.0",
        description="REST API for creating, searching and deleting timed reminders.",
        lifespan=lifespan,
    )

    def filtered_view() -> FilteredViewResponse:
        controller = get_reminder_app(app).controller
        return FilteredViewResponse(
            query=controller.query,
            is_empty=controller.is_empty,
            reminders=[ReminderOut.from_reminder(r) for r in controller.filtered],
        )

    @app.get("/reminders", response_model=FilteredViewResponse)
    async def list_reminders_endpoint() -> FilteredViewResponse:
        return filtered_view()

    @app.post("/reminders", response_model=ReminderCreateResponse, status_code=status.HTTP_201_CREATED)
    async def create_reminder_endpoint(payload: ReminderCreateRequest) -> ReminderCreateResponse:
        try:
            result = get_reminder_app(app).controller.create(payload.text, payload.date)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc

        warnings = [str(err) for err in (result.persist_error, result.schedule_error) if err]
        return ReminderCreateResponse(
            reminder=ReminderOut.from_reminder(result.reminder),
            persisted=result.persisted,
            scheduled=result.scheduled,
            warnings=warnings,
        )

    @app.delete("/reminders/{index}", response_model=RemovalResponse)
    async def remove_reminder_endpoint(index: int) -> RemovalResponse:
        try:
            result = get_reminder_app(app).controller.remove_at(index)
        except IndexError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

        return RemovalResponse(
            removed=[ReminderOut.from_reminder(r) for r in result.removed],
            nothing_to_remove=result.nothing_to_remove,
            persisted=result.persisted,
        )

    @app.delete("/reminders", response_model=RemovalResponse)
    async def remove_all_endpoint() -> RemovalResponse:
        result = get_reminder_app(app).controller.remove_all()
        return RemovalResponse(
            removed=[ReminderOut.from_reminder(r) for r in result.removed],
            nothing_to_remove=result.nothing_to_remove,
            persisted=result.persisted,
        )

    @app.put("/query", response_model=FilteredViewResponse)
    async def set_query_endpoint(payload: QueryRequest) -> FilteredViewResponse:
        get_reminder_app(app).controller.set_query(payload.query)
        return filtered_view()

    @app.get("/notifications", response_model=NotificationBatch)
    async def notifications_endpoint(limit: int = 20, flush: bool = True) -> NotificationBatch:
        try:
            notifications = await get_reminder_app(app).get_notifications(limit=limit, flush=flush)
            return NotificationBatch(notifications=notifications)
        except Exception as exc:  # pragma: no cover
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch notifications: {exc}",
            ) from exc

    @app.get("/health")
    async def health_endpoint() -> Dict[str, Any]:
        try:
            return get_reminder_app(app).snapshot()
        except Exception as exc:  # pragma: no cover
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch health snapshot: {exc}",
            ) from exc

    return app


app = create_app()


def serve() -> None:
    """Run the API with uvicorn on the configured host and port."""
    import uvicorn

    config = load_config()
    uvicorn.run(
        create_app(ReminderApp(config=config)),
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
    )
