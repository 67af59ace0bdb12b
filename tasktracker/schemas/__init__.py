"""Pydantic schemas for API requests and responses."""

from tasktracker.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from tasktracker.schemas.reminder import (
    ReminderProgressRequest,
    ReminderProgressResponse,
    ReminderTriggeredRequest,
    ReminderTriggeredResponse,
)
from tasktracker.schemas.task import TaskCreate, TaskResponse, TaskUpdate

__all__ = [
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "ReminderProgressRequest",
    "ReminderProgressResponse",
    "ReminderTriggeredRequest",
    "ReminderTriggeredResponse",
]
