"""Shareable design state and its URL-safe token codec.

Token layout: ``v1.`` + URL-safe base64 (no padding) of zlib-compressed
compact JSON. The JSON keys are the camelCase names used by share links.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import secrets
import zlib
from typing import Annotated, Any, Literal
from urllib.parse import parse_qs, urlencode, urlsplit

import pydantic
from pydantic import BaseModel, ConfigDict, Field, PlainValidator, StrictBool, StrictInt, StrictStr
from pydantic.alias_generators import to_camel

from .colors import Color
from .errors import DecodeError, from_pydantic

log = logging.getLogger(__name__)

TOKEN_PREFIX = "v1."
SHARE_PARAM = "share"


def _as_color(value: Any) -> Color:
    if isinstance(value, Color):
        return value
    return Color.from_dict(value)


PaletteColor = Annotated[Color, PlainValidator(_as_color)]


class _Record(BaseModel):
    """Frozen model whose validation failures surface as our ValidationError."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except pydantic.ValidationError as exc:
            raise from_pydantic(exc) from exc

    @classmethod
    def parse(cls, data: Any):
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as exc:
            raise from_pydantic(exc) from exc


class Dimensions(_Record):
    width: StrictInt = Field(ge=1)
    height: StrictInt = Field(ge=1)


class ShareableState(_Record):
    dimensions: Dimensions
    selected_design: StrictStr = Field(min_length=1)
    shipping_speed: Literal["standard", "expedited", "rushed"] = "standard"
    color_pattern: Literal[
        "striped", "gradient", "checkerboard", "random", "fade", "center-fade"
    ] = "fade"
    orientation: Literal["horizontal", "vertical"] = "horizontal"
    is_reversed: StrictBool = False
    custom_palette: tuple[PaletteColor, ...] = ()
    is_rotated: StrictBool = False
    pattern_style: Literal["tiled", "geometric"] = "tiled"
    style: Literal["geometric", "tiled", "striped"] = "geometric"

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude={"custom_palette"})
        data["customPalette"] = [_color_entry(c) for c in self.custom_palette]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ShareableState":
        return cls.parse(data)


def _color_entry(color: Color) -> dict[str, str]:
    # unnamed colors omit the key to keep tokens short
    if color.name is None:
        return {"hex": color.hex}
    return {"hex": color.hex, "name": color.name}


class ShareableStateCodec:
    def encode(self, state: ShareableState) -> str:
        raw = json.dumps(state.to_dict(), separators=(",", ":"), ensure_ascii=False)
        packed = zlib.compress(raw.encode("utf-8"), 9)
        return TOKEN_PREFIX + base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")

    def decode(self, token: str) -> ShareableState:
        if not isinstance(token, str) or not token.startswith(TOKEN_PREFIX):
            raise DecodeError("share token has an unknown format")
        body = token[len(TOKEN_PREFIX):]
        try:
            packed = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
            data = json.loads(zlib.decompress(packed).decode("utf-8"))
        except (binascii.Error, zlib.error, UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(f"share token could not be decoded: {exc}") from exc
        return ShareableState.from_dict(data)


_codec = ShareableStateCodec()
encode = _codec.encode
decode = _codec.decode


def share_url(state: ShareableState, base_url: str = "") -> str:
    return f"{base_url.rstrip('/')}/order?{urlencode({SHARE_PARAM: encode(state)})}"


def token_from_url(url: str) -> str:
    """Pull the share token out of a full URL, a query string or a bare token."""
    if url.startswith(TOKEN_PREFIX):
        return url
    query = urlsplit(url).query or url.lstrip("?")
    values = parse_qs(query).get(SHARE_PARAM)
    if not values:
        raise DecodeError(f"no {SHARE_PARAM}= parameter in link")
    return values[0]


class ShareRegistry:
    """In-memory short-id → token table, standing in for the server-side store."""

    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._tokens)

    def put(self, token: str) -> str:
        decode(token)
        short_id = secrets.token_urlsafe(6)
        while short_id in self._tokens:
            short_id = secrets.token_urlsafe(6)
        self._tokens[short_id] = token
        log.debug("stored share token under %s", short_id)
        return short_id

    def get(self, short_id: str) -> str | None:
        return self._tokens.get(short_id)


__all__ = [
    "Dimensions",
    "ShareableState",
    "ShareableStateCodec",
    "ShareRegistry",
    "encode",
    "decode",
    "share_url",
    "token_from_url",
]
