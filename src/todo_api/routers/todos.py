from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ..auth import require_principal
from ..errors import NotFound
from ..schemas import TodoCreate, TodoOut, TodoUpdate
from ..service import TodoService
from ..views import sort_todos

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
    dependencies=[Depends(require_principal)],
    responses={401: {"description": "Authentication required"}},
)


def _get_service(request: Request) -> TodoService:
    """
    Dependency returning the TodoService built for this app.
    """
    return request.app.state.todo_service


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description=(
        "List todos, newest first.\n\n"
        "Query parameters:\n"
        "- category: only return todos in this category ('work' or 'personal')\n"
        "- sort: newest-first (default), oldest-first, completion-status or alphabetical; "
        "the client values dateCreated-desc, dateCreated-asc, completed and title are accepted too. "
        "Unrecognized values leave the default order unchanged."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid category"},
    },
)
def list_todos(
    category: Optional[str] = Query(None, description="Filter by category; empty means no filter"),
    sort: Optional[str] = Query(None, description="Sort criterion"),
    service: TodoService = Depends(_get_service),
) -> List[TodoOut]:
    items = service.list(category or None)
    if sort:
        items = sort_todos(items, sort)
    return [TodoOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        400: {"description": "Invalid todo ID"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int, service: TodoService = Depends(_get_service)) -> TodoOut:
    return TodoOut(**service.get(todo_id))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoCreate, service: TodoService = Depends(_get_service)) -> TodoOut:
    return TodoOut(**service.create(payload))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Partially update title, description, category or completedAt. "
        "An empty payload leaves the todo unchanged."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error or invalid todo ID"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(todo_id: int, payload: TodoUpdate, service: TodoService = Depends(_get_service)) -> TodoOut:
    return TodoOut(**service.update(todo_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a Todo item by ID. Deletion is permanent.",
    responses={
        204: {"description": "Todo deleted"},
        400: {"description": "Invalid todo ID"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, service: TodoService = Depends(_get_service)) -> Response:
    if not service.delete(todo_id):
        raise NotFound()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo Completion",
    description="Mark an open todo completed now, or reopen a completed one.",
    responses={
        200: {"description": "Todo toggled"},
        400: {"description": "Invalid todo ID"},
        404: {"description": "Todo not found"},
    },
)
def toggle_todo(todo_id: int, service: TodoService = Depends(_get_service)) -> TodoOut:
    return TodoOut(**service.toggle_completion(todo_id))
