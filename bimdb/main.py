import logging

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from jinja2 import TemplateError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from .config import Settings, get_settings, settings
from .db import get_db
from .exceptions import BimDBError, MethodNotAllowedError
from .routes import RequestContext, path_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

app = FastAPI(title="bimdb", docs_url=None, redoc_url=None, openapi_url=None)


@app.exception_handler(BimDBError)
async def bimdb_exception_handler(request: Request, exc: BimDBError) -> PlainTextResponse:
    headers = None
    if isinstance(exc, MethodNotAllowedError):
        headers = {"Allow": exc.allow_header}
    return PlainTextResponse(exc.body(), status_code=exc.status_code, headers=headers)


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(TemplateError)
async def internal_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error(
        "failed to handle %s %s", request.method, request.url.path, exc_info=exc
    )
    return PlainTextResponse("500 Internal Server Error", status_code=500)


@app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
async def handle_request(
    request: Request,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
) -> Response:
    raw_path = request.scope.get("raw_path") or request.scope["path"].encode("utf-8")
    path = raw_path.split(b"?", 1)[0]

    segments = path_router.segments_for(path, config.base_path)
    route, params = path_router.resolve(segments, request.method)

    ctx = RequestContext(
        request=request,
        db=db,
        settings=config,
        path_params=params,
        body=await request.body(),
    )
    return await run_in_threadpool(route.endpoint, ctx)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)
