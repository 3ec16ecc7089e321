from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from api.api import api_router
from core.config import configs
from core.dependencies import get_embedding_cache
from core.logger import setup_logging
from app.common.errors import EmbeddingModelError, InputValidationError, ScorerError, error_payload

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🔧 Starting Photo Grouping Worker...")
    if configs.PRELOAD_EMBEDDING_MODEL:
        # Loads in the background; requests arriving meanwhile wait on the same construction.
        get_embedding_cache().warm_up()
        logger.info("Embedding model warm-up scheduled.")
    yield
    # Shutdown
    logger.info("🛑 Shutting down Photo Grouping Worker...")

app = FastAPI(
    title=configs.PROJECT_NAME,
    description="Groups photos by visual similarity and picks the best of each group",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS (Allow all for development env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InputValidationError)
async def input_validation_error_handler(request: Request, exc: InputValidationError):
    return JSONResponse(status_code=400, content=error_payload(exc, 400))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {"loc": (), "msg": "Invalid request"}
    loc = [str(p) for p in first.get("loc", ()) if p != "body"]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    field = loc[0] if loc else None
    return JSONResponse(
        status_code=400,
        content=error_payload(InputValidationError(f"{'.'.join(loc)}: {message}" if loc else message, field), 400),
    )


@app.exception_handler(EmbeddingModelError)
async def embedding_model_error_handler(request: Request, exc: EmbeddingModelError):
    logger.error(f"💥 Embedding model unavailable: {exc}")
    return JSONResponse(status_code=500, content=error_payload(exc, 500))


@app.exception_handler(ScorerError)
async def scorer_error_handler(request: Request, exc: ScorerError):
    logger.error(f"💥 Quality scorer failed: {exc}")
    return JSONResponse(status_code=500, content=error_payload(exc, 500))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"💥 Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_payload(exc, 500))


app.include_router(api_router, prefix="/api")
app.mount("/metrics", make_asgi_app())

@app.get("/")
async def root():
    return {"message": "Photo Grouping Worker Running"}

@app.get("/health")
async def health_check():
    return {"status": "ok", "embeddingModel": get_embedding_cache().state.value}
