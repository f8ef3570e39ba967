"""Path decoding and the route table dispatcher."""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .exceptions import (
    BadRequestError,
    BimDBError,
    FormDecodeError,
    MethodNotAllowedError,
    RouteNotFoundError,
)
from .multiset import decode_component

logger = logging.getLogger(__name__)

STATIC_FILE_RE = re.compile(r"^[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)*$")

Endpoint = Callable[..., object]


def path_to_segments(path: str) -> list[str]:
    """Split a raw URI path on ``/`` and decode each segment.

    The empty segment produced by a leading slash is dropped.
    """
    pieces = path.split("/")
    if pieces and pieces[0] == "":
        pieces = pieces[1:]
    return [decode_component(piece) for piece in pieces]


def strip_base_path(segments: Sequence[str], base_segments: Sequence[str]) -> list[str] | None:
    if len(base_segments) > len(segments):
        return None
    for segment, base_segment in zip(segments, base_segments):
        if segment != base_segment:
            return None
    return list(segments[len(base_segments):])


@dataclass(frozen=True)
class Route:
    """One row of the route table.

    ``pattern`` is written like a URL path: ``/`` for the index, literal
    segments, and ``{name}`` placeholders that must match ``param_re``.
    """

    pattern: str
    methods: tuple[str, ...]
    endpoint: Endpoint
    param_re: re.Pattern | None = None

    @property
    def parts(self) -> list[str]:
        return [part for part in self.pattern.split("/") if part]

    def match(self, segments: Sequence[str]) -> dict[str, str] | None:
        parts = self.parts
        if not parts:
            if not segments or (len(segments) == 1 and segments[0] == ""):
                return {}
            return None
        if len(parts) != len(segments):
            return None

        params: dict[str, str] = {}
        for part, segment in zip(parts, segments):
            if part.startswith("{") and part.endswith("}"):
                if self.param_re is not None and not self.param_re.match(segment):
                    return None
                params[part[1:-1]] = segment
            elif part != segment:
                return None
        return params


class PathRouter:
    def __init__(self, routes: Sequence[Route]) -> None:
        self.routes = list(routes)

    def segments_for(self, raw_path: bytes, base_path: str) -> list[str]:
        try:
            base_segments = path_to_segments(base_path)
        except FormDecodeError as exc:
            logger.error("failed to split base path %r into segments", base_path)
            raise BimDBError("500 Internal Server Error") from exc
        try:
            segments = path_to_segments(raw_path.decode("ascii"))
        except (UnicodeDecodeError, FormDecodeError) as exc:
            logger.warning("failed to split URI path %r into segments", raw_path)
            raise BadRequestError("invalid URI path") from exc

        stripped = strip_base_path(segments, base_segments)
        if stripped is None:
            raise BadRequestError("URI outside of base path")
        return stripped

    def resolve(self, segments: Sequence[str], method: str) -> tuple[Route, dict[str, str]]:
        for route in self.routes:
            params = route.match(segments)
            if params is None:
                continue
            if method not in route.methods:
                raise MethodNotAllowedError(method, route.methods)
            return route, params
        raise RouteNotFoundError()
