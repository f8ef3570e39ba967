from ..routing import STATIC_FILE_RE, PathRouter, Route
from .common import RequestContext
from .couplings import couplings_add, couplings_delete, couplings_edit, couplings_list
from .export import export_cbor, export_json
from .static import static_file
from .vehicles import vehicles_add, vehicles_delete, vehicles_edit, vehicles_list

GET = ("GET",)
POST = ("POST",)
GET_POST = ("GET", "POST")

ROUTES = (
    Route("/", GET, vehicles_list),
    Route("/json", GET, export_json),
    Route("/cbor", GET, export_cbor),
    Route("/add", GET_POST, vehicles_add),
    Route("/edit", GET_POST, vehicles_edit),
    Route("/delete", POST, vehicles_delete),
    Route("/couplings", GET, couplings_list),
    Route("/coupling-add", GET_POST, couplings_add),
    Route("/coupling-edit", GET_POST, couplings_edit),
    Route("/coupling-delete", POST, couplings_delete),
    Route("/static/{name}", GET, static_file, param_re=STATIC_FILE_RE),
)

path_router = PathRouter(ROUTES)

__all__ = ["ROUTES", "RequestContext", "path_router"]
