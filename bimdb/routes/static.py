from pathlib import Path

from fastapi.responses import FileResponse

from ..exceptions import RouteNotFoundError
from .common import RequestContext

CONTENT_TYPES = (
    (".css", "text/css"),
    (".js.map", "application/json"),
    (".js", "text/javascript"),
    (".ts", "text/x.typescript"),
)


def content_type_for(name: str) -> str:
    for suffix, content_type in CONTENT_TYPES:
        if name.endswith(suffix):
            return content_type
    return "application/octet-stream"


def static_file(ctx: RequestContext) -> FileResponse:
    # the route pattern only admits plain file names, never a directory part
    name = ctx.path_params["name"]
    if not ctx.settings.static_path:
        raise RouteNotFoundError()
    path = Path(ctx.settings.static_path) / name
    if not path.is_file():
        raise RouteNotFoundError()
    return FileResponse(path, media_type=content_type_for(name))
