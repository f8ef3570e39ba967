import re
from dataclasses import dataclass, field

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ..config import PACKAGE_DIR, Settings
from ..exceptions import BadRequestError, FormDecodeError
from ..multiset import ValueMultiset

INT_RE = re.compile(r"[+-]?[0-9]+")
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))


@dataclass
class RequestContext:
    """Everything a handler needs for one request."""

    request: Request
    db: Session
    settings: Settings
    path_params: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    _query: ValueMultiset | None = None

    @property
    def query(self) -> ValueMultiset:
        if self._query is None:
            try:
                self._query = ValueMultiset.parse(self.request.scope.get("query_string", b""))
            except FormDecodeError as exc:
                raise BadRequestError("invalid UTF-8 in query") from exc
        return self._query

    def form(self) -> ValueMultiset:
        try:
            return ValueMultiset.parse(self.body)
        except FormDecodeError as exc:
            raise BadRequestError("invalid form data") from exc

    def render(self, name: str, context: dict) -> HTMLResponse:
        return templates.TemplateResponse(
            self.request,
            name,
            {"request": self.request, "base_path": self.settings.base_path, **context},
        )

    def redirect(self, subpath: str = "") -> RedirectResponse:
        url = f"{self.settings.base_path}{subpath}" or "/"
        return RedirectResponse(url=url, status_code=302)

    def id_param(self) -> int:
        value = self.query.get_last("id")
        if value is None:
            raise BadRequestError("missing parameter 'id'")
        return parse_int(value, "invalid parameter value for 'id'")


def parse_int(value: str, message: str) -> int:
    if not INT_RE.fullmatch(value):
        raise BadRequestError(message)
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise BadRequestError(message)
    return number
