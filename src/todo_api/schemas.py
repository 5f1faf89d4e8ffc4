from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

TITLE_MAX_LENGTH = 255


def _clean_title(value: str) -> str:
    """
    Strip whitespace and enforce 1..TITLE_MAX_LENGTH characters.
    """
    s = value.strip()
    if not s:
        raise ValueError("title is required")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValueError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return s


def _clean_description(value: Optional[str]) -> Optional[str]:
    # Blank descriptions are stored as NULL.
    if value is None:
        return None
    return value.strip() or None


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)


# PUBLIC_INTERFACE
class TodoReplace(BaseModel):
    """
    Schema for replacing an existing Todo item.

    All three fields must be present; `description` may be null. Partial
    updates are not supported.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "description": None,
                "completed": True,
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(..., description="Detailed description or null")
    completed: StrictBool = Field(..., description="Completion status flag (JSON true/false only)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")


class HealthOut(BaseModel):
    status: str = Field(..., description="Always 'OK' when the process is serving requests")
    message: str
    backend: str = Field(..., description="Configured persistence backend")
