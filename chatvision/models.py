# chatvision/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class Record(BaseModel):
    # camelCase on disk and on the wire, snake_case in python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_now)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Role(str, Enum):
    user = "user"
    ai = "ai"


class User(Record):
    username: str
    password: str  # digest, never the plain password


class ChatSession(Record):
    user_id: str
    session_id: str


class ChatMessage(Record):
    session_id: str
    role: Role
    content: str
    image_data: Optional[str] = None  # base64 encoded image


class PublicUser(BaseModel):
    id: str
    username: str


class UserStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_chats: int = 0
    total_messages: int = 0
    images_analyzed: int = 0

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
