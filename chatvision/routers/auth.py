# chatvision/routers/auth.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field

from ..config import Settings
from ..database import get_storage
from ..models import PublicUser, User
from ..storage import FileStorage

logger = logging.getLogger(__name__)

authRoutes = APIRouter(prefix="/api", tags=["auth"])

oauth2_bearer = OAuth2PasswordBearer(tokenUrl="api/login", auto_error=False)
storage_link = Annotated[FileStorage, Depends(get_storage)]

# salted SHA-256; plain hex SHA-256 digests from older data files still verify
password_context = CryptContext(schemes=["ldap_salted_sha256", "hex_sha256"], deprecated="auto")


class Credentials(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


def hash_password(plain: str) -> str:
    return password_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return password_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # unrecognised digest format
        return False


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = {"sub": user.username, "uid": user.id}
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_bearer)],
    storage: storage_link,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> User:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("uid")
    if not user_id or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Not authorized: missing claims")
    user = storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_user(
    token: Annotated[Optional[str], Depends(oauth2_bearer)],
    storage: storage_link,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Optional[User]:
    """Router-level guard; data routes are open unless ENFORCE_AUTH is set."""
    if not settings.enforce_auth:
        return None
    return get_current_user(token, storage, settings)


@authRoutes.post("/register")
def register_user(payload: Credentials, storage: storage_link):
    try:
        existing = storage.get_user_by_username(payload.username)
        if existing:
            raise HTTPException(status_code=409, detail="Username already exists")
        user = storage.create_user(payload.username, hash_password(payload.password))
    except HTTPException:
        raise
    except Exception:
        logger.exception("Registration error")
        raise HTTPException(status_code=400, detail="Invalid registration data")

    logger.info("Registered user %s", user.username)
    return {"success": True, "user": PublicUser(id=user.id, username=user.username).model_dump()}


@authRoutes.post("/login")
def login(
    payload: Credentials,
    storage: storage_link,
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    try:
        user = storage.get_user_by_username(payload.username)
        if not user or not verify_password(payload.password, user.password):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        token = create_access_token(user, settings)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Login error")
        raise HTTPException(status_code=500, detail="Login failed")

    return {
        "success": True,
        "user": PublicUser(id=user.id, username=user.username).model_dump(),
        "token": token,
    }
