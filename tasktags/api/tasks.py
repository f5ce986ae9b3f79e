"""
API endpoints for tasks.

Besides CRUD this is where a task's tags are managed:
- POST /tasks/{id}/tags           replace tags by id
- POST /tasks/{id}/tags-multiple  replace tags by a free-text tag string
- GET  /tasks?tagIds=1&tagIds=2   list tasks carrying every selected tag
"""

from fastapi import APIRouter, Depends, Query, Response, status

from ..services import TaskService
from .dependencies import get_task_service
from .schemas import (
    ErrorResponse,
    TagStringRequest,
    TaskCreate,
    TaskResponse,
    TaskTagIdsRequest,
    TaskTagIdsResponse,
    TaskTagNamesResponse,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Task not found"}}


# ============================================================================
# CREATE TASK
# ============================================================================


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={400: {"model": ErrorResponse, "description": "Validation error"}},
)
async def create_task(
    data: TaskCreate, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """
    Create a new task without tags.

    Example request:
    ```json
    {
        "name": "Buy groceries",
        "description": "Milk, bread"
    }
    ```
    """
    task = await service.create_task(name=data.name, description=data.description)
    return TaskResponse.model_validate(task)


# ============================================================================
# LIST TASKS (with tag filter)
# ============================================================================


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="List tasks",
    description="""
    List every task with its tags.

    **Filter:**
    - tagIds: repeatable; only tasks carrying ALL selected tags are returned

    Without tagIds the full list is returned.
    """,
)
async def list_tasks(
    tag_ids: list[int] = Query([], alias="tagIds", description="Tags that must all be present"),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    tasks = await service.list_tasks(tag_ids)
    return [TaskResponse.model_validate(task) for task in tasks]


# ============================================================================
# SINGLE TASK
# ============================================================================


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task",
    responses=NOT_FOUND_RESPONSE,
)
async def get_task(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    task = await service.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Edit a task",
    responses=NOT_FOUND_RESPONSE,
)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Partial update: omitted fields keep their value.

    Send `"description": ""` to clear the description.
    """
    task = await service.update_task(task_id, name=data.name, description=data.description)
    return TaskResponse.model_validate(task)


@router.patch(
    "/{task_id}/done",
    response_model=TaskResponse,
    summary="Toggle completion",
    responses=NOT_FOUND_RESPONSE,
)
async def toggle_task_done(
    task_id: int, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    task = await service.toggle_done(task_id)
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)) -> Response:
    """Delete a task; its tags stay, only the links are removed."""
    await service.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# TAG MEMBERSHIP
# ============================================================================


@router.post(
    "/{task_id}/tags",
    response_model=TaskTagIdsResponse,
    summary="Replace tags by id",
    responses={404: {"model": ErrorResponse, "description": "Task or tag not found"}},
)
async def set_task_tags(
    task_id: int,
    data: TaskTagIdsRequest,
    service: TaskService = Depends(get_task_service),
) -> TaskTagIdsResponse:
    """
    Replace the whole tag set of a task.

    Example request:
    ```json
    {"tagIds": [1, 3]}
    ```

    An empty list removes every tag. Unknown ids fail the request and leave
    the task untouched.
    """
    tag_ids = await service.set_task_tags_by_id(task_id, data.tag_ids)
    return TaskTagIdsResponse(task_id=task_id, tag_ids=tag_ids)


@router.post(
    "/{task_id}/tags-multiple",
    response_model=TaskTagNamesResponse,
    summary="Replace tags by tag string",
    responses={
        **NOT_FOUND_RESPONSE,
        400: {"model": ErrorResponse, "description": "Tag name too long"},
        503: {"model": ErrorResponse, "description": "Storage failure, retry"},
    },
)
async def set_task_tags_from_string(
    task_id: int,
    data: TagStringRequest,
    service: TaskService = Depends(get_task_service),
) -> TaskTagNamesResponse:
    """
    Replace the task's tags with the tags named in a space-separated string.

    Example request:
    ```json
    {"tagString": "urgent home Urgent"}
    ```

    Names are matched ignoring case; missing tags are created with a color
    derived from the name. Repeating the same request changes nothing.
    """
    tags = await service.set_task_tags_by_string(task_id, data.tag_string)
    return TaskTagNamesResponse(task_id=task_id, tag_names=[tag.name for tag in tags])
