# chatvision/storage.py
import logging
from typing import List, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from .database import RecordStore
from .models import ChatMessage, ChatSession, Record, Role, User, UserStats

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class FileStorage:
    """Typed CRUD surface over a RecordStore. Every query is a linear scan."""

    def __init__(self, store: RecordStore):
        self.store = store

    def _load(self, kind: str, model: Type[R]) -> List[R]:
        records = []
        for raw in self.store.read_all(kind):
            try:
                records.append(model.model_validate(raw))
            except ValidationError as e:
                # one bad row must not hide the rest of the file
                logger.warning("Skipping invalid %s record: %s", kind, e)
        return records

    def _users(self) -> List[User]:
        return self._load("users", User)

    def _sessions(self) -> List[ChatSession]:
        return self._load("sessions", ChatSession)

    def _messages(self) -> List[ChatMessage]:
        return self._load("messages", ChatMessage)

    # users

    def create_user(self, username: str, password_digest: str) -> User:
        # uniqueness is the caller's job
        user = User(username=username, password=password_digest)
        self.store.append("users", user.to_json())
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users() if u.id == user_id), None)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users() if u.username == username), None)

    # sessions

    def create_chat_session(self, user_id: str, session_id: str) -> ChatSession:
        session = ChatSession(user_id=user_id, session_id=session_id)
        self.store.append("sessions", session.to_json())
        return session

    def get_chat_sessions_by_user_id(self, user_id: str) -> List[ChatSession]:
        return [s for s in self._sessions() if s.user_id == user_id]

    # messages

    def create_chat_message(
        self,
        session_id: str,
        role: Union[Role, str],
        content: str,
        image_data: Optional[str] = None,
    ) -> ChatMessage:
        message = ChatMessage(
            session_id=session_id,
            role=role,
            content=content,
            image_data=image_data or None,
        )
        self.store.append("messages", message.to_json())
        return message

    def get_chat_messages_by_session_id(self, session_id: str) -> List[ChatMessage]:
        # file order is insertion order
        return [m for m in self._messages() if m.session_id == session_id]

    # stats

    def get_user_stats(self, user_id: str) -> UserStats:
        sessions = self.get_chat_sessions_by_user_id(user_id)
        session_ids = {s.session_id for s in sessions}
        joined = [m for m in self._messages() if m.session_id in session_ids]
        return UserStats(
            total_chats=len(sessions),
            total_messages=sum(1 for m in joined if m.role == Role.user),
            images_analyzed=sum(1 for m in joined if m.image_data),
        )
