# taskminder/modules/tasks/routers.py

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from loguru import logger

from taskminder.core.errors import InvalidInputError, NotFoundError, TaskError
from taskminder.core.security import CurrentUser
from taskminder.models.api_common import DetailResponse, StatusResponse
from taskminder.models.tasks import TaskAPI, TaskCreateAPI, TaskUpdateAPI, TaskPageAPI
from .models import TaskUpdateInternal
from .services import TaskManager, get_task_manager

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

tasks_router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    responses={
        400: {"model": DetailResponse},
        401: {"model": DetailResponse},
        404: {"model": DetailResponse},
        500: {"model": DetailResponse},
    },
)

def _http_error(exc: Exception) -> HTTPException:
    """Maps manager errors to responses without leaking internal detail."""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if isinstance(exc, TaskError):
        logger.error(f"Task store failure: {exc}")
    else:
        logger.exception(f"Unexpected error handling task request: {exc}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

def _positive_int(raw: Optional[str], default: int) -> int:
    """Missing, non-numeric or non-positive query values fall back to the default."""
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= 1 else default

@tasks_router.post(
    "",
    response_model=TaskAPI,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    payload: TaskCreateAPI,
    current_user: CurrentUser,
    manager: TaskManager = Depends(get_task_manager),
):
    log = logger.bind(username=current_user.username)
    log.info("Endpoint: creating task...")
    try:
        task = await manager.create(payload.title, payload.description, payload.due_date)
    except Exception as e:
        raise _http_error(e)
    return TaskAPI.model_validate(task)

@tasks_router.get(
    "",
    response_model=TaskPageAPI,
    summary="List tasks, newest first",
)
async def list_tasks(
    current_user: CurrentUser,
    page: Optional[str] = Query(None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 10)"),
    manager: TaskManager = Depends(get_task_manager),
):
    page_num = _positive_int(page, DEFAULT_PAGE)
    page_size = _positive_int(limit, DEFAULT_LIMIT)
    try:
        tasks, total = await manager.list(limit=page_size, offset=(page_num - 1) * page_size)
    except Exception as e:
        raise _http_error(e)
    return TaskPageAPI(
        page=page_num,
        limit=page_size,
        total=total,
        totalPages=math.ceil(total / page_size),
        data=[TaskAPI.model_validate(t) for t in tasks],
    )

@tasks_router.get(
    "/{task_id}",
    response_model=TaskAPI,
    summary="Get a task by ID",
)
async def get_task(
    current_user: CurrentUser,
    task_id: int = Path(..., description="Task ID"),
    manager: TaskManager = Depends(get_task_manager),
):
    try:
        task = await manager.get(task_id)
    except Exception as e:
        raise _http_error(e)
    return TaskAPI.model_validate(task)

@tasks_router.put(
    "/{task_id}",
    response_model=TaskAPI,
    summary="Update a task (only the fields sent are changed)",
)
async def update_task(
    payload: TaskUpdateAPI,
    current_user: CurrentUser,
    task_id: int = Path(..., description="Task ID"),
    manager: TaskManager = Depends(get_task_manager),
):
    log = logger.bind(task_id=task_id, username=current_user.username)
    log.info("Endpoint: updating task...")
    # Carry over only what the client actually sent, so omitted and cleared fields stay distinct
    changes = TaskUpdateInternal(**payload.model_dump(exclude_unset=True))
    try:
        task = await manager.update(task_id, changes)
    except Exception as e:
        raise _http_error(e)
    return TaskAPI.model_validate(task)

@tasks_router.patch(
    "/{task_id}/complete",
    response_model=StatusResponse,
    summary="Mark a task complete",
)
async def mark_task_complete(
    current_user: CurrentUser,
    task_id: int = Path(..., description="Task ID"),
    manager: TaskManager = Depends(get_task_manager),
):
    try:
        await manager.mark_complete(task_id)
    except Exception as e:
        raise _http_error(e)
    return StatusResponse(status=True)

@tasks_router.delete(
    "/{task_id}",
    response_model=StatusResponse,
    summary="Delete a task",
)
async def delete_task(
    current_user: CurrentUser,
    task_id: int = Path(..., description="Task ID"),
    manager: TaskManager = Depends(get_task_manager),
):
    log = logger.bind(task_id=task_id, username=current_user.username)
    log.info("Endpoint: deleting task...")
    try:
        await manager.delete(task_id)
    except Exception as e:
        raise _http_error(e)
    return StatusResponse(status=True)
