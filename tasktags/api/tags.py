"""API endpoints for tags."""

from fastapi import APIRouter, Depends, Response, status

from ..services import TagService
from .dependencies import get_tag_service
from .schemas import ErrorResponse, TagCreate, TagResponse, TagUpdate, TaskResponse

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse], summary="List tags")
async def get_tags(service: TagService = Depends(get_tag_service)) -> list[TagResponse]:
    """All tags, ordered by id."""
    tags = await service.get_all_tags()
    return [TagResponse.model_validate(tag) for tag in tags]


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tag",
    responses={400: {"model": ErrorResponse, "description": "Name taken or invalid"}},
)
async def create_tag(data: TagCreate, service: TagService = Depends(get_tag_service)) -> TagResponse:
    """
    Create a tag; its color is assigned by the server.

    Example request:
    ```json
    {"name": "urgent"}
    ```
    """
    tag = await service.create_tag(data.name)
    return TagResponse.model_validate(tag)


@router.get(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Get a tag",
    responses={404: {"model": ErrorResponse, "description": "Tag not found"}},
)
async def get_tag(tag_id: int, service: TagService = Depends(get_tag_service)) -> TagResponse:
    tag = await service.get_tag(tag_id)
    return TagResponse.model_validate(tag)


@router.put(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Rename a tag",
    responses={
        400: {"model": ErrorResponse, "description": "Name taken or invalid"},
        404: {"model": ErrorResponse, "description": "Tag not found"},
    },
)
async def rename_tag(
    tag_id: int, data: TagUpdate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    """Rename a tag; the color is recomputed from the new name."""
    tag = await service.rename_tag(tag_id, data.name)
    return TagResponse.model_validate(tag)


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a tag",
    responses={404: {"model": ErrorResponse, "description": "Tag not found"}},
)
async def delete_tag(tag_id: int, service: TagService = Depends(get_tag_service)) -> Response:
    """Delete a tag and detach it from every task."""
    await service.delete_tag(tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{tag_id}/tasks",
    response_model=list[TaskResponse],
    summary="Tasks carrying a tag",
    responses={404: {"model": ErrorResponse, "description": "Tag not found"}},
)
async def get_tag_tasks(
    tag_id: int, service: TagService = Depends(get_tag_service)
) -> list[TaskResponse]:
    tasks = await service.get_tasks_for_tag(tag_id)
    return [TaskResponse.model_validate(task) for task in tasks]
