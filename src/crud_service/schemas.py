from __future__ import annotations

from typing import Dict, NamedTuple, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from .models import TASK, TODO, USER


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new Task. ``completed`` is always false on creation.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Write report", "description": "Quarterly numbers"}
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: str = Field(..., description="Detailed description")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing Task.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"completed": True}})

    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": 1, "title": "Write report", "description": "Quarterly numbers", "completed": False}
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: str = Field(..., description="Detailed description")
    completed: bool = Field(..., description="Completion status flag")


class TodoCreate(TaskCreate):
    """Schema for creating a new Todo item."""


class TodoUpdate(TaskUpdate):
    """Schema for partially updating a Todo item."""


class TodoOut(TaskOut):
    """Schema returned by the API for a Todo item."""


# PUBLIC_INTERFACE
class UserCreate(BaseModel):
    """
    Schema for creating a new User. ``email`` must be unique.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Jane Doe", "email": "jane@example.com"}}
    )

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address, unique across users")


# PUBLIC_INTERFACE
class UserUpdate(BaseModel):
    """
    Schema for updating an existing User.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Jane Smith"}})

    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Email address, unique across users")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """
    Schema returned by the API for a User.
    """

    id: int = Field(..., description="Unique identifier of the user")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")


class ErrorOut(BaseModel):
    """Body of every failed HTTP response."""

    error: str = Field(..., description="Short description of the failure")


class EntitySchemas(NamedTuple):
    create: Type[BaseModel]
    update: Type[BaseModel]
    out: Type[BaseModel]


SCHEMAS: Dict[str, EntitySchemas] = {
    TASK.name: EntitySchemas(TaskCreate, TaskUpdate, TaskOut),
    TODO.name: EntitySchemas(TodoCreate, TodoUpdate, TodoOut),
    USER.name: EntitySchemas(UserCreate, UserUpdate, UserOut),
}
