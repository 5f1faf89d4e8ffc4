from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..repositories import Repository, StorageError, get_repository
from ..schemas import TodoCreate, TodoOut, TodoReplace

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_NOT_FOUND = "Todo not found"


@contextmanager
def _storage_failure(detail: str) -> Iterator[None]:
    """
    Map storage failures to a generic 500. Details go to the log only.
    """
    try:
        yield
    except StorageError:
        logger.exception(detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every Todo item, most recently created first.",
    responses={
        200: {"description": "List retrieved successfully"},
        500: {"description": "Storage failure"},
    },
)
def list_todos(repo: Repository = Depends(get_repository)) -> List[TodoOut]:
    with _storage_failure("Failed to fetch todos"):
        items = repo.list()
    return [TodoOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the stored resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Missing or blank title"},
        500: {"description": "Storage failure"},
    },
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(get_repository)) -> TodoOut:
    """
    Create a new Todo. Title and description arrive already trimmed.
    """
    with _storage_failure("Failed to create todo"):
        created = repo.create(payload)
    logger.info("Created todo %s", created["id"])
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Replace title, description and completed of an existing Todo item. "
        "All three fields are required; partial updates are not supported."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Missing or invalid fields"},
        404: {"description": "Todo not found"},
        500: {"description": "Storage failure"},
    },
)
def replace_todo(
    todo_id: int, payload: TodoReplace, repo: Repository = Depends(get_repository)
) -> TodoOut:
    with _storage_failure("Failed to update todo"):
        updated = repo.replace(todo_id, payload)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
        500: {"description": "Storage failure"},
    },
)
def delete_todo(todo_id: int, repo: Repository = Depends(get_repository)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    with _storage_failure("Failed to delete todo"):
        ok = repo.delete(todo_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    logger.info("Deleted todo %s", todo_id)
    return None
