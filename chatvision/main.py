# chatvision/main.py
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .clients import AIGateway
from .config import Settings, configure_logging
from .database import RecordStore
from .errors import error_body, register_exception_handlers
from .routers import ai, auth, chats, users
from .storage import FileStorage

logger = logging.getLogger(__name__)

# room for the multipart boundaries and the prompt field
MULTIPART_ALLOWANCE = 64 * 1024


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[FileStorage] = None,
    gateway: Optional[AIGateway] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="ChatVision – text and image chat")
    app.state.settings = settings
    app.state.storage = storage or FileStorage(RecordStore(settings.data_dir))
    app.state.gateway = gateway or AIGateway(settings)

    register_exception_handlers(app)

    app.include_router(auth.authRoutes)
    app.include_router(chats.router)
    app.include_router(ai.router)
    app.include_router(users.router)

    @app.middleware("http")
    async def limit_upload_size(request: Request, call_next):
        if request.url.path == "/api/ai/image":
            declared = request.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > settings.max_upload_bytes + MULTIPART_ALLOWANCE:
                return JSONResponse(status_code=413, content=error_body("Image exceeds the 10MB limit"))
        return await call_next(request)

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path
        if path.startswith("/api"):
            duration = int((time.perf_counter() - start) * 1000)
            line = f"{request.method} {path} {response.status_code} in {duration}ms"
            if len(line) > 80:
                line = line[:79] + "…"
            logger.info(line)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.static_dir and settings.static_dir.is_dir():
        # built browser client, mounted last so /api wins
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        @app.get("/")
        def read_root() -> dict:
            return {"msg": "welcome to chatvision"}

    return app


def run() -> None:
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level)
    logger.info("serving on port %s", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
