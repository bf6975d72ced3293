"""Populate dataclasses from request data.

Field names match keys case-insensitively, so ``{"Wheels": 4}``,
``?wheels=4`` and ``<Wheels>4</Wheels>`` all fill ``wheels: int``.
Missing keys keep the field default; a value that cannot be converted
to the annotated type raises ``BindingError``.

Supported field types: ``str``, ``int``, ``float``, ``bool``,
``datetime``, ``date``, nested dataclasses (JSON and XML), ``list[X]``
(query strings and forms collect repeated keys), and ``X | None``.
"""

from __future__ import annotations

import dataclasses
import json as json_module
import types
import typing
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any
from xml.etree import ElementTree

from okapi.http.request import Request

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})

# Formats accepted besides ISO 8601, tried in order
_DATETIME_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S")


class BindingError(ValueError):
    """Request data could not be converted to the model type."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


def bind[T](cls: type[T], data: Mapping[str, Any]) -> T:
    """Create a *cls* instance from *data*.

    *data* may be a plain mapping (parsed JSON) or one of the
    multi-value mappings (``QueryParams``, ``FormData``); for the latter,
    ``list[X]`` fields receive every value sent under the key.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        msg = f"Can only bind dataclass types, got {cls!r}"
        raise TypeError(msg)
    if not isinstance(data, Mapping):
        msg = f"Cannot bind {cls.__name__} from {type(data).__name__}; expected an object"
        raise BindingError(msg)

    hints = typing.get_type_hints(cls)
    lowered = {str(k).lower(): k for k in data}
    kwargs: dict[str, Any] = {}

    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        key = lowered.get(f.name.lower())
        if key is None:
            continue
        target = hints.get(f.name, Any)
        if _is_list(target) and hasattr(data, "get_list"):
            raw: Any = data.get_list(key)  # type: ignore[attr-defined]
        else:
            raw = data[key]
        kwargs[f.name] = convert(raw, target, f.name)

    try:
        return cls(**kwargs)
    except TypeError as exc:
        # Required fields without defaults that the data did not supply
        raise BindingError(str(exc)) from exc


def _is_list(target: Any) -> bool:
    return typing.get_origin(target) in (list, tuple)


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or str(target)


def _fail(raw: Any, target: Any, field: str | None) -> BindingError:
    where = f" for field '{field}'" if field else ""
    return BindingError(
        f"Could not parse value '{raw}' to type '{_type_name(target)}'{where}.", field
    )


def convert(raw: Any, target: Any, field: str | None = None) -> Any:
    """Convert *raw* to *target*, raising ``BindingError`` on failure."""
    origin = typing.get_origin(target)

    if target is Any:
        return raw

    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(target) if a is not type(None)]
        if raw is None or raw == "":
            if len(args) < len(typing.get_args(target)):
                return None
        for arg in args:
            try:
                return convert(raw, arg, field)
            except BindingError:
                continue
        raise _fail(raw, target, field)

    if origin in (list, tuple):
        (item_type, *_rest) = typing.get_args(target) or (Any,)
        items = raw if isinstance(raw, list | tuple) else [raw]
        converted = [convert(item, item_type, field) for item in items]
        return converted if origin is list else tuple(converted)

    if raw is None:
        raise _fail(raw, target, field)

    if isinstance(target, type) and dataclasses.is_dataclass(target):
        return bind(target, raw)

    if target is str:
        return raw if isinstance(raw, str) else str(raw)

    if target is bool:
        if isinstance(raw, bool):
            return raw
        lowered = str(raw).strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise _fail(raw, target, field)

    if target is int:
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise _fail(raw, target, field)
        try:
            return int(raw.strip() if isinstance(raw, str) else raw)
        except (TypeError, ValueError):
            raise _fail(raw, target, field) from None

    if target is float:
        if isinstance(raw, bool):
            raise _fail(raw, target, field)
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise _fail(raw, target, field) from None

    if target is datetime:
        return _parse_datetime(raw, field)

    if target is date:
        return _parse_datetime(raw, field).date()

    msg = f"Unsupported field type '{_type_name(target)}'" + (f" for field '{field}'" if field else "")
    raise BindingError(msg, field)


def _parse_datetime(raw: Any, field: str | None) -> datetime:
    if isinstance(raw, datetime):
        return raw
    text = str(raw).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise _fail(raw, datetime, field)


# -- request sources ------------------------------------------------------


async def from_json[T](cls: type[T], request: Request) -> T:
    try:
        data = json_module.loads(await request.body() or b"null")
    except (json_module.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"Request body is not valid JSON: {exc}"
        raise BindingError(msg) from exc
    if data is None:
        data = {}
    return bind(cls, data)


async def from_xml[T](cls: type[T], request: Request) -> T:
    try:
        root = ElementTree.fromstring(await request.body())
    except ElementTree.ParseError as exc:
        msg = f"Request body is not valid XML: {exc}"
        raise BindingError(msg) from exc
    return bind(cls, _xml_to_dict(root))


def _xml_to_dict(node: ElementTree.Element) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for child in node:
        tag = child.tag.rsplit("}", 1)[-1]
        data[tag] = _xml_to_dict(child) if len(child) else (child.text or "")
    return data


def from_query[T](cls: type[T], request: Request) -> T:
    return bind(cls, request.query)


async def from_form[T](cls: type[T], request: Request) -> T:
    try:
        form = await request.form()
    except ValueError as exc:
        raise BindingError(str(exc)) from exc
    return bind(cls, form)


async def from_request[T](cls: type[T], request: Request) -> T:
    """Bind from the source the request's method and content type imply.

    ``GET``/``HEAD``/``DELETE`` and bodies without a content type bind
    from the query string; otherwise JSON, XML and form bodies are
    recognized.
    """
    media_type = (request.content_type or "").split(";")[0].strip().lower()
    if request.method in ("GET", "HEAD", "DELETE") or not media_type:
        return from_query(cls, request)
    if media_type == "application/json" or media_type.endswith("+json"):
        return await from_json(cls, request)
    if media_type in ("application/xml", "text/xml") or media_type.endswith("+xml"):
        return await from_xml(cls, request)
    if request.has_form_content_type:
        return await from_form(cls, request)
    msg = f"Cannot bind model from Content-Type '{media_type}'."
    raise BindingError(msg)
