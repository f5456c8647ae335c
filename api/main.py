"""
FastAPI application for the Bookshelf API.

Routes are thin: each one turns the incoming HTTP request into an
``IncomingRequest``, hands it to the matching handler in ``api.handlers``
and renders the returned ``Outcome`` as JSON.
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import handlers
from api.config import config
from api.database import BookStore
from api.models import ErrorKind, HealthResponse, IncomingRequest, Outcome
from utilities.logger import get_logger, setup_logging

logger = get_logger(__name__)

# Process-wide record store, empty at startup
book_store = BookStore()

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def get_book_store() -> BookStore:
    """Dependency returning the record store."""
    return book_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )
    logger.info("Starting Bookshelf API", host=config.host, port=config.port)

    yield

    logger.info("Shutting down Bookshelf API", books_stored=len(book_store))
    book_store.clear()


app = FastAPI(
    title=config.api_title,
    description=config.api_description,
    version=config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


def to_response(outcome: Outcome) -> JSONResponse:
    """Render a handler outcome as an HTTP response."""
    return JSONResponse(status_code=outcome.code, content=outcome.body)


async def read_payload(request: Request) -> Optional[Dict[str, Any]]:
    """
    Decode the JSON body of a request.

    Returns None for an empty body. Raises ValueError when the body is not
    valid JSON or is not a JSON object, and RecursionError when it nests
    deeper than the decoder allows.
    """
    raw = await request.body()
    if not raw.strip():
        return None

    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("JSON body must be an object")
    return payload


def build_request(request: Request, payload: Optional[Dict[str, Any]] = None) -> IncomingRequest:
    return IncomingRequest(
        method=request.method,
        path=request.url.path,
        params=dict(request.path_params),
        query=dict(request.query_params),
        payload=payload,
    )


async def dispatch_with_payload(request: Request, handler, store: BookStore) -> JSONResponse:
    try:
        payload = await read_payload(request)
    except (ValueError, RecursionError) as e:
        logger.warning("Invalid request payload", path=request.url.path, error=str(e))
        return to_response(Outcome.fail(ErrorKind.VALIDATION, handlers.INVALID_PAYLOAD_MESSAGE))

    return to_response(handler(build_request(request, payload), store))


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "fail", "error": True, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    message = str(exc) if config.debug else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": "fail", "error": True, "message": message}
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(store: BookStore = Depends(get_book_store)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=config.api_version,
        books_stored=len(store)
    )


# Books endpoints
@app.post("/books", tags=["Books"])
async def create_book(request: Request, store: BookStore = Depends(get_book_store)):
    """
    Add a book.

    - **name** is required
    - **readPage** must not be greater than **pageCount**
    """
    return await dispatch_with_payload(request, handlers.add_book, store)


@app.get("/books", tags=["Books"])
async def get_books(request: Request, store: BookStore = Depends(get_book_store)):
    """
    List books, optionally filtered.

    - **name**: case-insensitive substring of the title
    - **reading**: 1 or 0
    - **finished**: 1 or 0

    Only the last of name, reading, finished that is supplied is applied.
    """
    return to_response(handlers.list_books(build_request(request), store))


@app.get("/books/{bookId}", tags=["Books"])
async def get_book(request: Request, store: BookStore = Depends(get_book_store)):
    """Get a single book by ID."""
    return to_response(handlers.get_book(build_request(request), store))


@app.put("/books/{bookId}", tags=["Books"])
async def edit_book(request: Request, store: BookStore = Depends(get_book_store)):
    """Replace every client-supplied field of a book."""
    return await dispatch_with_payload(request, handlers.edit_book, store)


@app.delete("/books/{bookId}", tags=["Books"])
async def delete_book(request: Request, store: BookStore = Depends(get_book_store)):
    """Delete a book by ID."""
    return to_response(handlers.delete_book(build_request(request), store))


# Must stay last: matches every path and method left over
@app.api_route("/{any:path}", methods=ALL_METHODS, include_in_schema=False)
async def undefined_endpoint(request: Request, store: BookStore = Depends(get_book_store)):
    return to_response(handlers.undefined_endpoint(build_request(request), store))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
