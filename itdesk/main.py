from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from itdesk.api.api import api_router
from itdesk.core.config import settings
from itdesk.core.exceptions import ITDeskException
from itdesk.services.notification_service import NotificationDispatcher
from itdesk.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    if not settings.smtp_configured:
        logger.warning("⚠️ SMTP credentials not configured. Email notifications are disabled.")
    if not settings.LINE_CHANNEL_ACCESS_TOKEN:
        logger.warning("⚠️ LINE_CHANNEL_ACCESS_TOKEN not configured. LINE notifications are disabled.")

    yield

    logger.info("Application shutdown...")
    await app.state.dispatcher.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="IT support ticket and notification API",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json" if settings.API_V1_STR else "/openapi.json",
    lifespan=lifespan,
)

# One dispatcher per process; its SMTP connection is shared by every request
app.state.dispatcher = NotificationDispatcher(settings)


class HealthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/health":
            return Response("OK", status_code=200)
        return await call_next(request)


@app.exception_handler(ITDeskException)
async def itdesk_exception_handler(request: Request, exc: ITDeskException):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


origins = settings.BACKEND_CORS_ORIGINS
regex_parts = [o.replace('.', r'\.').replace('*', r'[a-zA-Z0-9-]+') for o in origins]
origin_regex = r"|".join(regex_parts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(HealthMiddleware)
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def read_root():
    """Root endpoint"""
    return {"message": "IT Desk API is running"}


if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run("itdesk.main:app", host="0.0.0.0", port=port)
