"""
city_info.api.negotiation

Content negotiation between the JSON and XML representations.

Responsibilities:
- Rank the caller's Accept header by quality value.
- Select the best registered serializer, or fail with `NotAcceptable`.
- Render pydantic representations into deterministic bytes.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from fastapi import Request
from pydantic import BaseModel
from starlette.responses import Response

from city_info.errors import ConfigurationError, NotAcceptable

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
ET.register_namespace("i", XSI_NS)

# Characters outside the XML 1.0 `Char` production cannot appear in a document at all.
_XML_ILLEGAL = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

Payload = BaseModel | Sequence[BaseModel]


class Serializer(Protocol):
    name: str
    media_types: tuple[str, ...]

    def serialize(self, payload: Payload, *, item: type[BaseModel] | None = None) -> bytes: ...


class JsonSerializer:
    name = "json"
    media_types = ("application/json", "text/json")

    def serialize(self, payload: Payload, *, item: type[BaseModel] | None = None) -> bytes:
        if isinstance(payload, BaseModel):
            data: Any = payload.model_dump(mode="json", by_alias=True)
        else:
            data = [p.model_dump(mode="json", by_alias=True) for p in payload]
        return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class XmlSerializer:
    """
    Element-per-field XML. Root element is the model class name (`ArrayOf<Model>` for lists);
    field elements are PascalCase; `None` becomes an empty element with `i:nil="true"`.
    """

    name = "xml"
    media_types = ("application/xml", "text/xml")

    def serialize(self, payload: Payload, *, item: type[BaseModel] | None = None) -> bytes:
        if isinstance(payload, BaseModel):
            root = self._model_element(type(payload).__name__, payload)
        else:
            item_name = item.__name__ if item is not None else _item_name(payload)
            root = ET.Element(f"ArrayOf{item_name}")
            for p in payload:
                root.append(self._model_element(type(p).__name__, p))
        return ET.tostring(root, encoding="utf-8", xml_declaration=True)

    def _model_element(self, tag: str, model: BaseModel) -> ET.Element:
        el = ET.Element(tag)
        names = [*type(model).model_fields, *type(model).model_computed_fields]
        for field_name in names:
            self._append_value(el, _pascal(field_name), getattr(model, field_name))
        return el

    def _append_value(self, parent: ET.Element, tag: str, value: Any) -> None:
        if isinstance(value, BaseModel):
            parent.append(self._model_element(tag, value))
            return
        child = ET.SubElement(parent, tag)
        if value is None:
            child.set(f"{{{XSI_NS}}}nil", "true")
        elif isinstance(value, list | tuple):
            for v in value:
                if isinstance(v, BaseModel):
                    child.append(self._model_element(type(v).__name__, v))
                else:
                    self._append_value(child, "Item", v)
        elif isinstance(value, bool):
            child.text = "true" if value else "false"
        else:
            child.text = xml_text(value)


def xml_text(value: Any) -> str:
    return _XML_ILLEGAL.sub("", str(value))


def _pascal(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def _item_name(payload: Sequence[BaseModel]) -> str:
    return type(payload[0]).__name__ if payload else "Item"


@dataclass(frozen=True, slots=True)
class MediaRange:
    type: str
    subtype: str
    q: float
    order: int

    @property
    def media_type(self) -> str:
        return f"{self.type}/{self.subtype}"


def parse_accept(header: str | None) -> list[MediaRange]:
    """
    Highest quality first; equal quality keeps header order. q=0 ranges are dropped.
    """

    ranges: list[MediaRange] = []
    if not header:
        return ranges
    for order, raw in enumerate(header.split(",")):
        parts = [p.strip() for p in raw.split(";")]
        media = parts[0].lower()
        if "/" not in media:
            continue
        type_, subtype = media.split("/", 1)
        q = 1.0
        for param in parts[1:]:
            key, _, val = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    q = float(val.strip())
                except ValueError:
                    q = 0.0
        if q <= 0:
            continue
        ranges.append(MediaRange(type_, subtype, q, order))
    return sorted(ranges, key=lambda r: (-r.q, r.order))


@dataclass(frozen=True, slots=True)
class Selection:
    serializer: Serializer
    media_type: str

    def response(
        self,
        payload: Payload,
        *,
        item: type[BaseModel] | None = None,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return Response(
            content=self.serializer.serialize(payload, item=item),
            status_code=status_code,
            media_type=self.media_type,
            headers=dict(headers) if headers else None,
        )


class ContentNegotiator:
    def __init__(self, serializers: Iterable[Serializer], *, default_media_type: str) -> None:
        self._serializers = tuple(serializers)
        self._by_media_type: dict[str, Serializer] = {}
        for s in self._serializers:
            for mt in s.media_types:
                if mt in self._by_media_type:
                    raise ConfigurationError(f"media type {mt!r} registered twice")
                self._by_media_type[mt] = s

        default = self._by_media_type.get(default_media_type.lower())
        if default is None:
            raise ConfigurationError(
                f"default media type {default_media_type!r} has no registered serializer"
            )
        self._default = Selection(default, default_media_type.lower())

    def supported_media_types(self) -> list[str]:
        return list(self._by_media_type)

    def select(self, accept: str | None) -> Selection:
        if accept is None or not accept.strip():
            return self._default

        for r in parse_accept(accept):
            if r.type == "*" and r.subtype == "*":
                return self._default
            if r.subtype == "*":
                if self._default.media_type.startswith(f"{r.type}/"):
                    return self._default
                for mt, s in self._by_media_type.items():
                    if mt.startswith(f"{r.type}/"):
                        return Selection(s, mt)
                continue
            serializer = self._by_media_type.get(r.media_type)
            if serializer is not None:
                return Selection(serializer, r.media_type)

        raise NotAcceptable(
            "None of the requested media types can be produced.",
            supported=self.supported_media_types(),
        )


def default_negotiator(default_media_type: str) -> ContentNegotiator:
    return ContentNegotiator(
        [JsonSerializer(), XmlSerializer()], default_media_type=default_media_type
    )


def negotiate(request: Request) -> Selection:
    negotiator: ContentNegotiator = request.app.state.negotiator
    accept = request.headers.get("accept")
    try:
        return negotiator.select(accept)
    except NotAcceptable:
        log = request.app.state.diagnostics.get_logger(__name__)
        log.info("negotiation.not_acceptable", accept=accept)
        raise


# --- Module Notes -----------------------------------------------------------
# Handlers declare `Depends(negotiate)` after their policy dependency, so an
# unauthenticated request never reaches negotiation.
