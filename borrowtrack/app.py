#!/usr/bin/env python3

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from borrowtrack import core
from borrowtrack.routes import api
from borrowtrack.configs import OPTIONS, CORS_ORIGINS, ADMIN_ACCOUNT
from borrowtrack.core.exceptions import (
    AuthenticationError,
    RecordNotFound,
    StoreError,
    ValidationError,
)
from borrowtrack import __version__ as VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if ADMIN_ACCOUNT['password']:
        await core.identity.ensure_admin(
            ADMIN_ACCOUNT['username'], ADMIN_ACCOUNT['email'], ADMIN_ACCOUNT['password'])
    yield


app = FastAPI(
    title="BorrowTrack API",
    description="BorrowTrack: equipment borrowing records, returns and availability",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "validation", "field": exc.field, "message": exc.message},
    )


@app.exception_handler(RecordNotFound)
async def record_not_found(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"error": "not_found", "message": str(exc)})


@app.exception_handler(StoreError)
async def store_error(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "store", "code": exc.code, "message": exc.message},
    )


@app.exception_handler(AuthenticationError)
async def authentication_error(request: Request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"error": "unauthorized", "message": str(exc)})


app.include_router(api.router, prefix="/v1/api")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("borrowtrack.app:app", **OPTIONS)
