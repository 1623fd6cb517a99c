"""
Books Router

CRUD endpoints for books. Handlers stay thin: they parse the request, call
the book service and wrap the result in the response envelope. Service
errors are turned into HTTP responses by the exception handlers in main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Path, status

from app.dependencies import BookServiceDep, Pagination
from app.schemas import ApiResponse, BookCreate, BookUpdate

# =============================================================================
# Router Configuration
# =============================================================================
router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)

BookId = Annotated[int, Path(ge=1, description="Book ID")]


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.get(
    "",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="List books",
    description="Get a page of books ordered by ascending id.",
)
def list_books(
    service: BookServiceDep,
    pagination: Pagination,
) -> ApiResponse:
    """
    List books with limit/offset pagination.

    Served from the cache when it holds any book; otherwise the page is read
    from the database and cached.
    """
    books = service.list_books(limit=pagination.limit, offset=pagination.offset)
    return ApiResponse(
        code=status.HTTP_200_OK,
        message="retrieved",
        object=[book.model_dump() for book in books],
    )


@router.get(
    "/{book_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Get a book by ID",
    description="Retrieve a book from the cache.",
)
def get_book(
    service: BookServiceDep,
    book_id: BookId,
) -> ApiResponse:
    """
    Get a single book by its ID.

    Only the cache is consulted; a book that is not cached answers 404.
    """
    book = service.get_book(book_id)
    return ApiResponse(
        code=status.HTTP_200_OK,
        message="retrieved",
        object=book.model_dump(),
    )


@router.post(
    "",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="Store a book, cache it for 10 minutes and emit a create event.",
)
def create_book(
    book_data: BookCreate,
    service: BookServiceDep,
) -> ApiResponse:
    """Create a new book."""
    book = service.create_book(book_data)
    return ApiResponse(
        code=status.HTTP_201_CREATED,
        message="created",
        object=book.model_dump(),
    )


@router.put(
    "/{book_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Update a book",
    description="Replace a book's title, author and year.",
)
def update_book(
    book_data: BookUpdate,
    service: BookServiceDep,
    book_id: BookId,
) -> ApiResponse:
    """
    Update an existing book.

    Raises:
        404 if the book is not in the database
    """
    book = service.update_book(book_id, book_data)
    return ApiResponse(
        code=status.HTTP_200_OK,
        message="updated",
        object=book.model_dump(),
    )


@router.delete(
    "/{book_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Delete a book",
    description="Delete a book from the database and the cache.",
)
def delete_book(
    service: BookServiceDep,
    book_id: BookId,
) -> ApiResponse:
    """Delete a book."""
    service.delete_book(book_id)
    return ApiResponse(
        code=status.HTTP_200_OK,
        message="book deleted successfully",
    )
