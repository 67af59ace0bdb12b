"""FastAPI dependencies for authentication and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.services.auth import decode_access_token
from tasktracker.services.notification_service import NotificationService
from tasktracker.services.reminder_state import ReminderService
from tasktracker.services.task_store import TaskStore

security = HTTPBearer()


def _credentials_error(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise _credentials_error()

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if user is None:
        raise _credentials_error("User not found")

    return user


def get_task_store(db: Annotated[Session, Depends(get_db)]) -> TaskStore:
    return TaskStore(db)


def get_reminder_service(db: Annotated[Session, Depends(get_db)]) -> ReminderService:
    """Get reminder service with dependencies."""
    return ReminderService(db)


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_owned_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[TaskStore, Depends(get_task_store)],
) -> Task:
    """Get a task owned by the current user; 404 for unknown or foreign tasks."""
    task = store.get(task_id, user_id=current_user.id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task
