from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Users
# Fields are optional so missing values reach the handlers and get the
# API's own error messages instead of a generic validation failure.
class UserCredentials(BaseModel):
    email: str | None = None
    password: str | None = None


class UserPublic(CamelModel):
    id: str
    email: str
    created_at: str


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


# Books
class BookPayload(CamelModel):
    title: str | None = None
    author: str | None = None
    genre: str | None = None
    published_year: Any = None


class BookOut(CamelModel):
    id: str
    title: str
    author: str
    genre: str
    published_year: int
    user_id: str
    created_at: str
    updated_at: str | None = None


class PaginationMeta(CamelModel):
    current_page: int
    total_pages: int
    total_books: int
    has_next_page: bool
    has_prev_page: bool


class BookListResponse(BaseModel):
    books: list[BookOut]
    pagination: PaginationMeta


class BookSearchResponse(BaseModel):
    books: list[BookOut]
    count: int


class MessageResponse(BaseModel):
    message: str
