"""StudyKit FastAPI application."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from config import Config
from logging_config import get_logger
from routers.content import router as content_router
from routers.documents import router as documents_router
from routers.sessions import router as sessions_router
from utils.errors import envelope, error_response

logger = get_logger(__name__)


# ── Lifespan ───────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    Config.validate()
    logger.info("app.started", version=Config.APP_VERSION)
    yield
    logger.info("app.stopped")


# ── FastAPI app ────────────────────────────────────────────────────────────────
app = FastAPI(title=Config.APP_NAME, version=Config.APP_VERSION, lifespan=lifespan)


# ── Global exception handlers — body validation + catch-all ────────────────────
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the standard envelope with a 400."""
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {where + ': ' if where else ''}{first.get('msg', 'malformed body')}"
    logger.warning("request.invalid", path=request.url.path, error=message)
    return envelope(
        message=message,
        status_code=400,
        session_id=getattr(request.state, "session_id", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all for anything that escaped a route's own handling."""
    return error_response(exc, request.url.path)


app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.get_cors_origins(),
    allow_origin_regex=Config.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ────────────────────────────────────────────────────────────────────
app.include_router(documents_router)
app.include_router(content_router)
app.include_router(sessions_router)


# ── Request logging middleware ─────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(
        "request.received",
        ip=request.client.host if request.client else "unknown",
        method=request.method,
        path=request.url.path,
    )
    return await call_next(request)


@app.get("/")
async def index():
    return envelope(
        data={"name": Config.APP_NAME, "version": Config.APP_VERSION, "status": "healthy"},
        message="StudyKit API",
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": Config.APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8787")))
