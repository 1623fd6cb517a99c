"""
Book Pydantic Schemas

Handles:
- Required field validation (title, author, year)
- The serialized book projection stored in the cache
- The response envelope returned by the HTTP endpoints
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookBase(BaseModel):
    """
    Base schema with shared book fields.

    A book is only accepted when title and author are non-blank and year is
    non-zero.
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["1984", "Pride and Prejudice"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["George Orwell", "Jane Austen"],
    )

    year: int = Field(
        ...,
        description="Publication year (negative for BCE, never zero)",
        examples=[1949, 1813],
    )

    @field_validator("title", "author")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Validate and normalize text fields."""
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip()

    @field_validator("year")
    @classmethod
    def year_must_be_set(cls, v: int) -> int:
        """Zero is the 'missing' value for year."""
        if v == 0:
            raise ValueError("Year is required and cannot be 0")
        return v


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "1984",
        "author": "George Orwell",
        "year": 1949
    }
    """


class BookUpdate(BookBase):
    """
    Schema for updating an existing book.

    PUT semantics: title, author and year all replace the stored values.
    """


class BookResponse(BookBase):
    """
    Schema for a stored book.

    This is also the projection written to the cache, so its JSON form is
    the cache value format: {"id": 1, "title": ..., "author": ..., "year": ...}
    """

    id: int = Field(..., ge=1, description="Unique identifier")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "year": 1949,
            }
        },
    )


class ApiResponse(BaseModel):
    """
    Envelope of every successful response.

    `object` carries the book (or list of books) and is omitted when the
    operation has nothing to return.
    """

    code: int = Field(..., description="HTTP status code of the response")
    message: str = Field(..., description="Short outcome description")
    object: Any | None = Field(default=None, description="Response payload")
