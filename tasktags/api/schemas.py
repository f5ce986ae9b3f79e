"""
Pydantic schemas for the API.

DTOs (Data Transfer Objects) - what travels over HTTP, kept apart from the
SQLAlchemy models. JSON field names are camelCase (``tagString``,
``dateCreated``); Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from ..models import (
    DEFAULT_TAG_COLOR,
    TAG_NAME_MAX_LENGTH,
    TASK_DESCRIPTION_MAX_LENGTH,
    TASK_NAME_MAX_LENGTH,
)


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case or camelCase accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(CamelModel):
    """
    Schema for creating a tag (POST /tags).

    Example:
    {
        "name": "urgent"
    }

    The color is assigned by the server.
    """

    name: str = Field(..., min_length=1, max_length=TAG_NAME_MAX_LENGTH, description="Tag name")


class TagUpdate(CamelModel):
    """Schema for renaming a tag (PUT /tags/{id})."""

    name: str = Field(..., min_length=1, max_length=TAG_NAME_MAX_LENGTH)


class TagResponse(CamelModel):
    """
    Tag in a response.

    Example:
    {
        "id": 1,
        "name": "urgent",
        "color": "#DD6E42"
    }
    """

    id: int
    name: str
    color: str = DEFAULT_TAG_COLOR

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskCreate(CamelModel):
    """
    Schema for creating a task (POST /tasks).

    Example:
    {
        "name": "Buy groceries",
        "description": "Milk, bread"
    }
    """

    name: str = Field(
        ..., min_length=1, max_length=TASK_NAME_MAX_LENGTH, description="Task name"
    )
    description: str | None = Field(
        None, max_length=TASK_DESCRIPTION_MAX_LENGTH, description="Task description"
    )


class TaskUpdate(CamelModel):
    """
    Schema for editing a task (PUT /tasks/{id}).

    All fields are optional (partial update).
    """

    name: str | None = Field(None, min_length=1, max_length=TASK_NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=TASK_DESCRIPTION_MAX_LENGTH)


class TaskResponse(CamelModel):
    """
    Task in a response.

    Example:
    {
        "id": 1,
        "name": "Buy groceries",
        "description": null,
        "done": false,
        "createdAt": "2026-10-18T12:00:00",
        "dateCreated": "18/10/2026",
        "tags": [{"id": 1, "name": "home", "color": "#5DD9C1"}]
    }
    """

    id: int
    name: str
    description: str | None
    done: bool
    created_at: datetime
    tags: list[TagResponse] = []

    model_config = ConfigDict(from_attributes=True)

    @computed_field(alias="dateCreated")  # type: ignore[prop-decorator]
    @property
    def date_created(self) -> str:
        """Creation date as dd/MM/yyyy, the format the web client displays."""
        return self.created_at.strftime("%d/%m/%Y")


# ============================================================================
# TAG ASSIGNMENT SCHEMAS
# ============================================================================


class TaskTagIdsRequest(CamelModel):
    """
    Replace a task's tags by id (POST /tasks/{id}/tags).

    Example:
    {
        "tagIds": [1, 2, 2]
    }

    Repeated ids are ignored.
    """

    tag_ids: list[int] = Field(default_factory=list, description="IDs of the tags to attach")


class TaskTagIdsResponse(CamelModel):
    """Result of POST /tasks/{id}/tags."""

    task_id: int
    tag_ids: list[int]


class TagStringRequest(CamelModel):
    """
    Replace a task's tags by name (POST /tasks/{id}/tags-multiple).

    Example:
    {
        "tagString": "urgent home Urgent"
    }

    Names are space-separated and compared ignoring case; unknown names are
    created. An empty string removes all tags.
    """

    tag_string: str = Field("", description="Space-separated tag names")


class TaskTagNamesResponse(CamelModel):
    """Result of POST /tasks/{id}/tags-multiple: existing tags first, then new ones."""

    task_id: int
    tag_names: list[str]


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Error tied to a specific request field.

    Example:
    {
        "field": "name",
        "message": "String should have at least 1 character"
    }
    """

    field: str = Field(..., description="Field name")
    message: str = Field(..., description="What is wrong with it")


class ErrorBody(BaseModel):
    """
    Error body with a machine-readable code.

    Codes:
    - VALIDATION_ERROR: invalid input
    - NOT_FOUND: task or tag does not exist
    - STORAGE_UNAVAILABLE: transient database failure, retry later
    - RATE_LIMIT_EXCEEDED: too many requests
    """

    code: str = Field(..., description="Error code (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Human-readable message")
    details: list[ErrorDetail] | None = Field(default=None, description="Per-field errors")


class ErrorResponse(BaseModel):
    """
    Single envelope for every API error.

    Example:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Task with id 999 not found",
            "details": null
        }
    }
    """

    error: ErrorBody
