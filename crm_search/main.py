"""
main.py — CRM Contact Search API

Mounts the contact search router, configures logging, creates tables on
startup, and maps CrmSearchError / HTTPException to ErrorResponse bodies.

Called by: uvicorn crm_search.main:app
Depends on: routers/contacts.py, logging_config.py, database.py
"""

import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from .errors import CrmSearchError
from .logging_config import setup_logging
from .routers.contacts import router as contacts_router
from .schemas.errors import ErrorResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if os.environ.get("TESTING"):
        logger.info("TESTING mode — skipping table creation")
    else:
        from .database import init_db

        init_db()
        logger.info("Tables ready")
    yield


app = FastAPI(title="CRM Contact Search", lifespan=lifespan)
app.include_router(contacts_router)


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or uuid.uuid4().hex[:12]


@app.exception_handler(CrmSearchError)
async def crm_search_error_handler(request: Request, exc: CrmSearchError):
    request_id = _request_id(request)
    logger.error("Search error [{}]: {}", request_id, exc)
    body = ErrorResponse(error=str(exc), status_code=exc.status_code, request_id=request_id)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    body = ErrorResponse(
        error=str(exc.detail), status_code=exc.status_code, request_id=_request_id(request)
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health")
def health():
    return {"status": "ok"}
