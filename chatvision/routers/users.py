# chatvision/routers/users.py
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ..database import get_storage
from ..models import PublicUser, User
from ..storage import FileStorage
from .auth import get_current_user, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/stats/{user_id}", dependencies=[Depends(require_user)])
def user_stats(user_id: str, db: Annotated[FileStorage, Depends(get_storage)]):
    try:
        stats = db.get_user_stats(user_id)
    except Exception:
        logger.exception("Get user stats error")
        raise HTTPException(status_code=500, detail="Failed to get user stats")
    return {"success": True, "stats": stats.to_json()}


@router.get("/me")
def read_me(current_user: Annotated[User, Depends(get_current_user)]):
    return {"success": True, "user": PublicUser(id=current_user.id, username=current_user.username).model_dump()}
