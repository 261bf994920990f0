from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """A row in one of the store's collections, keyed by camelCase on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, record: dict):
        return cls.model_validate(record)


class User(Record):
    id: str
    email: str
    password_hash: str
    created_at: str


class Book(Record):
    id: str
    title: str
    author: str
    genre: str
    published_year: int
    user_id: str
    created_at: str
    updated_at: str | None = None


class TokenClaim(BaseModel):
    user_id: str
    issued_at: datetime
    expires_at: datetime
