import logging
import math
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

import auth, errors, models, permissions, schemas
from store import BOOKS, RecordStore, StoreError, get_store

router = APIRouter(prefix="/api/books", tags=["Books"])
logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "All fields are required: title, author, genre, publishedYear"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validate_payload(book: schemas.BookPayload | None) -> schemas.BookPayload:
    # A publishedYear of 0 is treated as missing, like an empty title.
    if book is None or not (book.title and book.author and book.genre and book.published_year):
        raise errors.ValidationError(REQUIRED_FIELDS_MESSAGE)

    year = book.published_year
    if isinstance(year, bool) or not isinstance(year, int) or year < 0:
        raise errors.ValidationError("Published year must be a valid number")
    return book


def _matches_genre(record: dict, genre: str) -> bool:
    return genre.lower() in str(record.get("genre", "")).lower()


def _find_index(records: list[dict], book_id: str) -> int | None:
    for index, record in enumerate(records):
        if record.get("id") == book_id:
            return index
    return None


# Get Books
@router.get("", response_model=schemas.BookListResponse, response_model_exclude_none=True)
def get_books(
    genre: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    try:
        books = store.read(BOOKS)
    except StoreError as exc:
        logger.error(f"Get books error: {exc}")
        raise errors.InternalError("Failed to fetch books")

    if genre:
        books = [book for book in books if _matches_genre(book, genre)]

    total = len(books)
    start = (page - 1) * limit
    end = start + limit

    return {
        "books": books[start:end],
        "pagination": schemas.PaginationMeta(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_books=total,
            has_next_page=end < total,
            has_prev_page=start > 0,
        ),
    }


@router.get("/search", response_model=schemas.BookSearchResponse, response_model_exclude_none=True)
def search_books(
    genre: str | None = Query(default=None),
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    if not genre:
        raise errors.ValidationError("Genre parameter is required")

    try:
        books = store.read(BOOKS)
    except StoreError as exc:
        logger.error(f"Search books error: {exc}")
        raise errors.InternalError("Failed to search books")

    matches = [book for book in books if _matches_genre(book, genre)]
    return {"books": matches, "count": len(matches)}


@router.get("/{book_id}", response_model=schemas.BookOut, response_model_exclude_none=True)
def get_book(
    book_id: str,
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    try:
        record = store.find(BOOKS, book_id)
    except StoreError as exc:
        logger.error(f"Get book error: {exc}")
        raise errors.InternalError("Failed to fetch book")

    if record is None:
        raise errors.NotFoundError("Book not found")
    return record


# Add Book
@router.post(
    "",
    response_model=schemas.BookOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def add_book(
    book: schemas.BookPayload | None = None,
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    book = _validate_payload(book)

    new_book = models.Book(
        id=str(uuid.uuid4()),
        title=book.title,
        author=book.author,
        genre=book.genre,
        published_year=book.published_year,
        user_id=user.id,
        created_at=_now(),
    )

    try:
        store.append(BOOKS, new_book.to_record())
    except StoreError as exc:
        logger.error(f"Add book error: {exc}")
        raise errors.InternalError("Failed to add book")

    return new_book


@router.put("/{book_id}", response_model=schemas.BookOut, response_model_exclude_none=True)
def update_book(
    book_id: str,
    book: schemas.BookPayload | None = None,
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    try:
        with store.lock(BOOKS):
            books = store.read(BOOKS)
            index = _find_index(books, book_id)
            if index is None:
                raise errors.NotFoundError("Book not found")

            db_book = models.Book.from_record(books[index])
            permissions.ensure_can_mutate(user, db_book, "update")
            book = _validate_payload(book)

            updated = db_book.model_copy(
                update={
                    "title": book.title,
                    "author": book.author,
                    "genre": book.genre,
                    "published_year": book.published_year,
                    "updated_at": _now(),
                }
            )
            books[index] = updated.to_record()
            store.write(BOOKS, books)
    except StoreError as exc:
        logger.error(f"Update book error: {exc}")
        raise errors.InternalError("Failed to update book")

    return updated


@router.delete("/{book_id}", response_model=schemas.MessageResponse)
def delete_book(
    book_id: str,
    store: RecordStore = Depends(get_store),
    user: models.User = Depends(auth.get_current_user),
):
    try:
        with store.lock(BOOKS):
            books = store.read(BOOKS)
            index = _find_index(books, book_id)
            if index is None:
                raise errors.NotFoundError("Book not found")

            db_book = models.Book.from_record(books[index])
            permissions.ensure_can_mutate(user, db_book, "delete")

            del books[index]
            store.write(BOOKS, books)
    except StoreError as exc:
        logger.error(f"Delete book error: {exc}")
        raise errors.InternalError("Failed to delete book")

    logger.info("User %s deleted book %s", user.id, book_id)
    return {"message": "Book deleted successfully"}
