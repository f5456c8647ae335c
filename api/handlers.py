"""
Request handlers for the book resource.

Each handler maps an ``IncomingRequest`` to an ``Outcome`` and touches the
``BookStore`` as its only side effect. Business failures come back as fail
outcomes; nothing is raised across the handler boundary.
"""

import math
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any, List, Optional

import structlog
from pydantic import ValidationError

from api.database import BookStore
from api.models import Book, BookPayload, ErrorKind, IncomingRequest, Outcome

logger = structlog.get_logger(__name__)

BOOK_ID_LENGTH = 16
BOOK_ID_ALPHABET = string.ascii_letters + string.digits + "_-"

INVALID_PAYLOAD_MESSAGE = "Invalid request payload JSON format"

_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_PREFIXED_LITERAL = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_PREFIX_BASES = {"x": 16, "o": 8, "b": 2}


def generate_book_id(length: int = BOOK_ID_LENGTH) -> str:
    """Generate a URL-safe random identifier."""
    return "".join(secrets.choice(BOOK_ID_ALPHABET) for _ in range(length))


def current_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2021-03-04T09:11:44.598Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_number(value: Any) -> float:
    """
    Numeric coercion used by the reading/finished filters.

    Booleans become 1/0, blank strings 0, numeric strings their value
    (decimal, or 0x/0o/0b prefixed). Anything else, including a missing
    value, is NaN and therefore never equal to anything.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return math.nan

    text = value.strip()
    if not text:
        return 0.0
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if _DECIMAL_LITERAL.match(text):
        return float(text)

    prefixed = _PREFIXED_LITERAL.match(text)
    if prefixed:
        base = _PREFIX_BASES[prefixed.group(1).lower()]
        try:
            return float(int(prefixed.group(2), base))
        except ValueError:
            return math.nan
    return math.nan


def _parse_payload(request: IncomingRequest) -> BookPayload:
    return BookPayload.model_validate(request.payload or {})


def add_book(request: IncomingRequest, store: BookStore) -> Outcome:
    """Create a book from the request payload."""
    try:
        payload = _parse_payload(request)
    except ValidationError as e:
        logger.warning("Rejected book payload", errors=e.error_count())
        return Outcome.fail(ErrorKind.VALIDATION, INVALID_PAYLOAD_MESSAGE)

    if not payload.has_name():
        logger.warning("Book creation rejected", reason="missing name")
        return Outcome.fail(ErrorKind.VALIDATION, "Failed to add book. Please provide the book name")

    if payload.read_page_exceeds_page_count():
        logger.warning(
            "Book creation rejected",
            reason="readPage exceeds pageCount",
            read_page=payload.read_page,
            page_count=payload.page_count,
        )
        return Outcome.fail(
            ErrorKind.VALIDATION,
            "Failed to add book. readPage cannot be greater than pageCount",
        )

    book_id = generate_book_id()
    inserted_at = current_timestamp()
    book = Book.from_payload(book_id, payload, inserted_at=inserted_at, updated_at=inserted_at)

    with store.lock:
        store.append(book)
        is_success = store.find_index_by_id(book_id) is not None

    if is_success:
        logger.info("Book added", book_id=book_id, name=book.name)
        return Outcome.success(
            code=201,
            message="Book added successfully",
            data={"bookId": book_id},
        )

    logger.error("Book missing after append", book_id=book_id)
    return Outcome.fail(ErrorKind.INTERNAL, "Failed to add book")


def list_books(request: IncomingRequest, store: BookStore) -> Outcome:
    """
    List books as ``{id, name, publisher}`` summaries.

    The ``name``, ``reading`` and ``finished`` filters are evaluated in that
    order and each one starts again from the full collection, so only the
    last supplied filter decides the result.
    """
    books = store.find_all()
    if not books:
        return Outcome.success(count=0, data={"books": []})

    name = request.query.get("name")
    reading = request.query.get("reading")
    finished = request.query.get("finished")

    filtered: List[Book] = books
    if name is not None:
        needle = name.lower()
        filtered = [book for book in books if needle in book.name.lower()]
    if reading is not None:
        wanted = to_number(reading)
        filtered = [book for book in books if to_number(book.reading) == wanted]
    if finished is not None:
        wanted = to_number(finished)
        filtered = [book for book in books if to_number(book.finished) == wanted]

    summaries = [book.to_summary().model_dump() for book in filtered]
    return Outcome.success(count=len(summaries), data={"books": summaries})


def get_book(request: IncomingRequest, store: BookStore) -> Outcome:
    """Return the full record for ``bookId``."""
    book_id = request.params.get("bookId")
    book = store.find_by_id(book_id)

    if book is not None:
        return Outcome.success(data={"book": book.to_wire()})

    return Outcome.fail(ErrorKind.NOT_FOUND, "Book not found")


def edit_book(request: IncomingRequest, store: BookStore) -> Outcome:
    """Replace every client field of ``bookId``, keeping id and insertedAt."""
    book_id = request.params.get("bookId")
    try:
        payload = _parse_payload(request)
    except ValidationError as e:
        logger.warning("Rejected book payload", book_id=book_id, errors=e.error_count())
        return Outcome.fail(ErrorKind.VALIDATION, INVALID_PAYLOAD_MESSAGE)

    if not payload.has_name():
        logger.warning("Book update rejected", book_id=book_id, reason="missing name")
        return Outcome.fail(ErrorKind.VALIDATION, "Failed to update book. Please provide the book name")

    if payload.read_page_exceeds_page_count():
        logger.warning("Book update rejected", book_id=book_id, reason="readPage exceeds pageCount")
        return Outcome.fail(
            ErrorKind.VALIDATION,
            "Failed to update book. readPage cannot be greater than pageCount",
        )

    updated_at = current_timestamp()

    with store.lock:
        index = store.find_index_by_id(book_id)
        if index is not None:
            current = store.get_at(index)
            store.replace_at(
                index,
                Book.from_payload(
                    current.id,
                    payload,
                    inserted_at=current.inserted_at,
                    updated_at=updated_at,
                ),
            )

    if index is not None:
        logger.info("Book updated", book_id=book_id)
        return Outcome.success(message="Book updated successfully")

    return Outcome.fail(ErrorKind.NOT_FOUND, "Failed to update book. Id not found")


def delete_book(request: IncomingRequest, store: BookStore) -> Outcome:
    """Remove ``bookId`` from the store."""
    book_id = request.params.get("bookId")

    with store.lock:
        index = store.find_index_by_id(book_id)
        if index is not None:
            store.remove_at(index)

    if index is not None:
        logger.info("Book deleted", book_id=book_id)
        return Outcome.success(message="Book deleted successfully")

    return Outcome.fail(ErrorKind.NOT_FOUND, "Failed to delete book. Id not found")


def undefined_endpoint(request: IncomingRequest, store: Optional[BookStore] = None) -> Outcome:
    """Fallback for any method/path pair without a route."""
    unmatched = request.params.get("any", request.path.lstrip("/"))
    logger.info("Endpoint not found", method=request.method, path=request.path)
    return Outcome.fail(ErrorKind.NOT_FOUND, f'Endpoint "{unmatched}" not found')
