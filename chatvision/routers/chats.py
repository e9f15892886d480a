# chatvision/routers/chats.py
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..database import get_storage
from ..models import Role
from ..storage import FileStorage
from .auth import require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(require_user)])

chat_db = Annotated[FileStorage, Depends(get_storage)]


class SessionBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)


class MessageBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str = Field(..., min_length=1)
    role: Role
    content: str
    image_data: Optional[str] = None


@router.post("/session")
def create_session(body: SessionBody, db: chat_db):
    try:
        session = db.create_chat_session(body.user_id, body.session_id)
    except OSError:
        logger.exception("Create session error")
        raise HTTPException(status_code=400, detail="Invalid session data")
    return {"success": True, "session": session.to_json()}


@router.get("/sessions/{user_id}")
def list_sessions(user_id: str, db: chat_db):
    try:
        sessions = db.get_chat_sessions_by_user_id(user_id)
    except Exception:
        logger.exception("Get sessions error")
        raise HTTPException(status_code=500, detail="Failed to get sessions")
    return {"success": True, "sessions": [s.to_json() for s in sessions]}


@router.post("/message")
def create_message(body: MessageBody, db: chat_db):
    try:
        message = db.create_chat_message(body.session_id, body.role, body.content, body.image_data)
    except OSError:
        logger.exception("Create message error")
        raise HTTPException(status_code=400, detail="Invalid message data")
    return {"success": True, "message": message.to_json()}


@router.get("/messages/{session_id}")
def list_messages(session_id: str, db: chat_db):
    try:
        messages = db.get_chat_messages_by_session_id(session_id)
    except Exception:
        logger.exception("Get messages error")
        raise HTTPException(status_code=500, detail="Failed to get messages")
    return {"success": True, "messages": [m.to_json() for m in messages]}
