from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from fancychat.core.config import get_settings
from fancychat.core.errors import RelayError, MethodNotAllowed, relay_error_handler
from fancychat.core.logging import setup_logger
from fancychat.routes import chat

logger = setup_logger()
settings = get_settings()

app = FastAPI(title="FancyChat API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CHAT_PATH = "/api/chat"

app.add_exception_handler(RelayError, relay_error_handler)

@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405 and request.url.path.rstrip("/") == CHAT_PATH:
        return await relay_error_handler(request, MethodNotAllowed())
    return await http_exception_handler(request, exc)

app.include_router(chat.router, prefix="/api")

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

logger.info(f"FancyChat API ready (model={settings.OPENROUTER_MODEL}, api key configured={settings.api_key_configured})")
