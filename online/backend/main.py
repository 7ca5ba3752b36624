import os
import sys

# Add project root to sys.path so `python online/backend/main.py` resolves the `online` package
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if project_root not in sys.path:
    sys.path.append(project_root)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from online.backend.api.routes import keywords
from online.backend.core.config import get_settings
from online.backend.core.errors import KeywordExplorerError
from online.backend.core.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    description="Amazon keyword finder, universe and volume history backed by BlueCitrus"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(keywords.router, prefix=settings.API_V1_STR)


@app.exception_handler(KeywordExplorerError)
async def keyword_explorer_error_handler(request: Request, exc: KeywordExplorerError):
    """
    Converts engine errors into a structured failure; no partial table is ever sent.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} crashed: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": type(exc).__name__},
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "credentials_configured": settings.has_credentials()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("online.backend.main:app", host="0.0.0.0", port=8000, reload=True)
