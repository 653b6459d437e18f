import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fragments_api.config import settings
from fragments_api.routers import fragments, health
from fragments_api.domain.errors import (
    ConflictError,
    ConversionFailedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from fragments_api.application.event_handlers import register_event_handlers
from fragments_api.dependencies import get_artifact_storage, get_converter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    register_event_handlers()

    # Honour dependency overrides so tests can swap storage and converter
    storage = app.dependency_overrides.get(get_artifact_storage, get_artifact_storage)()
    storage.initialize(fail_fast=settings.FAIL_FAST_ON_INIT_ERROR)
    logger.info(f"Fragments API {settings.VERSION} started ({settings.ENVIRONMENT})")

    yield

    converter = app.dependency_overrides.get(get_converter, get_converter)()
    converter.close()


app = FastAPI(
    title="Fragments API",
    description="Convert uploaded models into fragments and serve them back by ID",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain error handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# Causes are logged by the service; clients only get a fixed message
@app.exception_handler(ConversionFailedError)
async def conversion_failed_handler(request: Request, exc: ConversionFailedError):
    return JSONResponse(status_code=500, content={"detail": "Error exporting fragments"})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"detail": "Error saving fragments"})

# Include routers
app.include_router(health.router, tags=["Health"])  # Health check endpoints first
app.include_router(fragments.router, tags=["Fragments"])

@app.get("/")
async def root():
    return {"message": "Welcome to the Fragments API. See /docs for API documentation"}
