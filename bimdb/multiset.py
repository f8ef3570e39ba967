"""Ordered multi-valued mapping for decoded query strings and form bodies."""

import re
from collections.abc import Iterator
from urllib.parse import unquote_to_bytes

from .exceptions import FormDecodeError

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_component(text: str) -> str:
    """Percent-decode ``text`` and validate the result as UTF-8."""
    if _BAD_ESCAPE_RE.search(text):
        raise FormDecodeError(f"invalid percent escape in {text!r}")
    try:
        return unquote_to_bytes(text).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormDecodeError(f"invalid UTF-8 in {text!r}") from exc


class ValueMultiset:
    """Maps each key to the list of values it was given, in order of appearance.

    Singular fields read ``get_last`` (a repeated key means the last one wins);
    repeatable fields such as checkboxes read ``get_list_or_empty``.
    """

    def __init__(self, pairs=()) -> None:
        self._values: dict[str, list[str]] = {}
        for key, value in pairs:
            self.add(key, value)

    @classmethod
    def parse(cls, data: bytes | str) -> "ValueMultiset":
        if isinstance(data, bytes):
            try:
                data = data.decode("ascii")
            except UnicodeDecodeError as exc:
                raise FormDecodeError("non-ASCII bytes in form data") from exc

        multiset = cls()
        for piece in data.split("&"):
            if not piece:
                continue
            key, sep, value = piece.partition("=")
            key = decode_component(key.replace("+", " "))
            if sep:
                multiset.add(key, decode_component(value.replace("+", " ")))
            else:
                multiset.add(key, None)
        return multiset

    def add(self, key: str, value: str | None) -> None:
        values = self._values.setdefault(key, [])
        if value is not None:
            values.append(value)

    def get_first(self, key: str) -> str | None:
        values = self._values.get(key)
        return values[0] if values else None

    def get_last(self, key: str) -> str | None:
        values = self._values.get(key)
        return values[-1] if values else None

    def get_list(self, key: str) -> list[str] | None:
        values = self._values.get(key)
        if values is None:
            return None
        return list(values)

    def get_list_or_empty(self, key: str) -> list[str]:
        return list(self._values.get(key, ()))

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ValueMultiset({self._values!r})"


def split_lines(text: str | None) -> list[str]:
    """Split a textarea value into stripped, non-blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]
