"""
API models and schemas for the Bookshelf application.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ResponseStatus(str, Enum):
    """Outcome status classification."""
    SUCCESS = "success"
    FAIL = "fail"


class ErrorKind(int, Enum):
    """Failure taxonomy mapped to the HTTP code it produces."""
    VALIDATION = 400
    NOT_FOUND = 404
    INTERNAL = 500


class BookPayload(BaseModel):
    """Client supplied fields for creating or replacing a book."""
    name: Optional[str] = Field(None, description="Book title")
    year: Optional[int] = Field(None, description="Publication year")
    author: Optional[str] = Field(None, description="Book author")
    summary: Optional[str] = Field(None, description="Short summary")
    publisher: Optional[str] = Field(None, description="Publisher name")
    page_count: Optional[int] = Field(None, alias="pageCount", description="Total pages")
    read_page: Optional[int] = Field(None, alias="readPage", description="Pages read so far")
    reading: Optional[bool] = Field(None, description="Whether the book is being read")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    def has_name(self) -> bool:
        """A name must be present and non-empty."""
        return bool(self.name)

    def _count(self, field: str) -> float:
        """An explicit null reads as 0 pages, an omitted count as NaN."""
        value = getattr(self, field)
        if value is None:
            return 0.0 if field in self.model_fields_set else math.nan
        return float(value)

    def read_page_exceeds_page_count(self) -> bool:
        """Never true when either count was omitted."""
        return self._count("read_page") > self._count("page_count")

    def is_finished(self) -> bool:
        return self.page_count == self.read_page


class Book(BaseModel):
    """Stored book record."""
    id: str = Field(..., description="16 character book identifier")
    name: str = Field(..., description="Book title")
    year: Optional[int] = Field(None, description="Publication year")
    author: Optional[str] = Field(None, description="Book author")
    summary: Optional[str] = Field(None, description="Short summary")
    publisher: Optional[str] = Field(None, description="Publisher name")
    page_count: Optional[int] = Field(None, alias="pageCount", description="Total pages")
    read_page: Optional[int] = Field(None, alias="readPage", description="Pages read so far")
    reading: Optional[bool] = Field(None, description="Whether the book is being read")
    inserted_at: str = Field(..., alias="insertedAt", description="Creation timestamp")
    updated_at: str = Field(..., alias="updatedAt", description="Last update timestamp")
    finished: bool = Field(..., description="Whether every page has been read")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "id": "Qbax5Oy7L8WKf74l",
                "name": "Buku A",
                "year": 2010,
                "author": "John Doe",
                "summary": "Lorem ipsum dolor sit amet",
                "publisher": "Dicoding Indonesia",
                "pageCount": 100,
                "readPage": 25,
                "reading": False,
                "insertedAt": "2021-03-04T09:11:44.598Z",
                "updatedAt": "2021-03-04T09:11:44.598Z",
                "finished": False,
            }
        },
    }

    @classmethod
    def from_payload(cls, book_id: str, payload: BookPayload, inserted_at: str, updated_at: str) -> "Book":
        """Assemble a record from a payload, deriving ``finished``."""
        return cls(
            id=book_id,
            name=payload.name,
            year=payload.year,
            author=payload.author,
            summary=payload.summary,
            publisher=payload.publisher,
            page_count=payload.page_count,
            read_page=payload.read_page,
            reading=payload.reading,
            inserted_at=inserted_at,
            updated_at=updated_at,
            finished=payload.is_finished(),
        )

    def to_summary(self) -> "BookSummary":
        return BookSummary(id=self.id, name=self.name, publisher=self.publisher)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class BookSummary(BaseModel):
    """Projection used by the book listing."""
    id: str = Field(..., description="Book identifier")
    name: str = Field(..., description="Book title")
    publisher: Optional[str] = Field(None, description="Publisher name")


class IncomingRequest(BaseModel):
    """Framework independent description of a request."""
    method: str = Field("GET", description="HTTP method")
    path: str = Field("/", description="Request path")
    params: Dict[str, str] = Field(default_factory=dict, description="Path parameters")
    query: Dict[str, str] = Field(default_factory=dict, description="Query parameters")
    payload: Optional[Dict[str, Any]] = Field(None, description="Decoded JSON body")


class Outcome(BaseModel):
    """Result of a handler: status classification, HTTP code and JSON body."""
    status: ResponseStatus = Field(..., description="success or fail")
    code: int = Field(..., description="HTTP status code")
    body: Dict[str, Any] = Field(default_factory=dict, description="JSON response body")

    @classmethod
    def success(
        cls,
        code: int = 200,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        count: Optional[int] = None,
    ) -> "Outcome":
        body: Dict[str, Any] = {"status": ResponseStatus.SUCCESS.value, "error": False}
        if message is not None:
            body["message"] = message
        if count is not None:
            body["count"] = count
        if data is not None:
            body["data"] = data
        return cls(status=ResponseStatus.SUCCESS, code=code, body=body)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Outcome":
        body = {"status": ResponseStatus.FAIL.value, "error": True, "message": message}
        return cls(status=ResponseStatus.FAIL, code=kind.value, body=body)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: str = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    books_stored: int = Field(..., description="Number of books held in memory")
