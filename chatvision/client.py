# chatvision/client.py
"""Python client for the chatvision API.

``AuthState`` plays the part of browser storage, ``ChatVisionClient`` maps
one method to each route, and ``ChatComposer`` drives a chat page: save the
user turn, ask the model, save the reply.
"""
import base64
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("CHATVISION_API_URL", "http://localhost:5000")
DEFAULT_AUTH_FILE = Path(
    os.getenv("CHATVISION_AUTH_FILE", str(Path.home() / ".chatvision" / "auth.json"))
)
RECENT_SESSIONS = 5


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ComposerError(Exception):
    """The user turn was saved but no reply was stored for it."""

    def __init__(self, message: str, orphaned_message: dict):
        super().__init__(message)
        self.orphaned_message = orphaned_message


class AuthState:
    """User record and token kept on disk between runs. No refresh or expiry."""

    def __init__(self, path: Union[str, Path] = DEFAULT_AUTH_FILE):
        self.path = Path(path)
        self.user: Optional[Dict[str, Any]] = None
        self.token: Optional[str] = None
        self.load()

    @property
    def logged_in(self) -> bool:
        return bool(self.user and self.token)

    def load(self) -> None:
        try:
            saved = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return
        if saved.get("user") and saved.get("token"):
            self.user = saved["user"]
            self.token = saved["token"]

    def save(self, user: Dict[str, Any], token: str) -> None:
        self.user, self.token = user, token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"user": user, "token": token}), encoding="utf-8")

    def clear(self) -> None:
        self.user = self.token = None
        if self.path.exists():
            self.path.unlink()


class ChatVisionClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        auth: Optional[AuthState] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 120.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.auth = auth or AuthState()

    def _headers(self) -> Dict[str, str]:
        if self.auth.token:
            return {"Authorization": f"Bearer {self.auth.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        resp = self.http.request(method, path, headers=self._headers(), **kwargs)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400 or not data.get("success"):
            raise ApiError(resp.status_code, data.get("error") or resp.reason_phrase)
        return data

    # landing

    def headline(self) -> str:
        return self._request("GET", "/api/ai/headline")["headline"]

    # auth

    def register(self, username: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/api/register", json={"username": username, "password": password})["user"]

    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/login", json={"username": username, "password": password})
        self.auth.save(data["user"], data["token"])
        return data["user"]

    def logout(self) -> None:
        self.auth.clear()

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/user/me")["user"]

    # chat records

    def create_session(self, session_id: str) -> Dict[str, Any]:
        user = self._require_user()
        body = {"userId": user["id"], "sessionId": session_id}
        return self._request("POST", "/api/chat/session", json=body)["session"]

    def sessions(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        user_id = user_id or self._require_user()["id"]
        return self._request("GET", f"/api/chat/sessions/{user_id}")["sessions"]

    def post_message(
        self, session_id: str, role: str, content: str, image_data: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {"sessionId": session_id, "role": role, "content": content}
        if image_data:
            body["imageData"] = image_data
        return self._request("POST", "/api/chat/message", json=body)["message"]

    def messages(self, session_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/chat/messages/{session_id}")["messages"]

    def stats(self, user_id: Optional[str] = None) -> Dict[str, int]:
        user_id = user_id or self._require_user()["id"]
        return self._request("GET", f"/api/user/stats/{user_id}")["stats"]

    # model

    def ai_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        body = {"prompt": prompt}
        if system_instruction:
            body["systemInstruction"] = system_instruction
        return self._request("POST", "/api/ai/text", json=body)["response"]

    def ai_image(self, image: bytes, prompt: Optional[str] = None, mime_type: str = "image/png") -> Dict[str, Any]:
        files = {"image": ("upload", image, mime_type)}
        data = {"prompt": prompt} if prompt else {}
        return self._request("POST", "/api/ai/image", files=files, data=data)

    # dashboard

    def dashboard(self) -> Dict[str, Any]:
        user = self._require_user()
        try:
            stats = self.stats(user["id"])
        except ApiError:
            stats = {"totalChats": 0, "totalMessages": 0, "imagesAnalyzed": 0}
        return {
            "user": user,
            "stats": stats,
            "recent_sessions": self.sessions(user["id"])[:RECENT_SESSIONS],
        }

    def _require_user(self) -> Dict[str, Any]:
        if not self.auth.logged_in:
            raise ApiError(401, "Not logged in")
        return self.auth.user


def new_session_id() -> str:
    return str(int(time.time() * 1000))


@dataclass
class SendResult:
    user_message: dict
    reply_message: dict

    @property
    def reply(self) -> str:
        return self.reply_message["content"]


class ChatComposer:
    def __init__(self, client: ChatVisionClient, session_id: Optional[str] = None):
        self.client = client
        self.session_id = session_id or new_session_id()

    def open(self) -> Dict[str, Any]:
        return self.client.create_session(self.session_id)

    def history(self) -> List[Dict[str, Any]]:
        return self.client.messages(self.session_id)

    def send(self, text: str, image: Optional[bytes] = None, mime_type: str = "image/png") -> SendResult:
        """Save the user turn, ask the model, save the reply.

        The three steps are separate requests. If the model call or the
        reply save fails, the user turn stays stored without a reply and
        ``ComposerError.orphaned_message`` holds it.
        """
        text = text.strip()
        if not text and image is None:
            raise ValueError("Nothing to send")
        if not text:
            text = "Analyze this image"

        image_url = None
        if image is not None:
            image_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"

        user_message = self.client.post_message(self.session_id, "user", text, image_url)

        try:
            if image is not None:
                answer = self.client.ai_image(image, text, mime_type)["response"]
            else:
                answer = self.client.ai_text(text)
            reply_message = self.client.post_message(self.session_id, "ai", answer)
        except (ApiError, httpx.HTTPError) as e:
            logger.error("Failed to send message: %s", e)
            raise ComposerError(f"Failed to send message: {e}", user_message) from e

        return SendResult(user_message=user_message, reply_message=reply_message)
