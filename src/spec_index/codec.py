"""Serialization of index and descriptor payloads.

The spec index never interprets payload bytes itself; it goes through a
``Codec``. ``JsonCodec`` is the default: UTF-8 JSON documents, deflated
with zlib for compressed transfers.
"""
from __future__ import annotations

import json
import zlib
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Tuple, Type


class Codec(Protocol):
    """Payload codec injected into the spec fetcher."""

    decode_errors: Tuple[Type[BaseException], ...]

    def decode(self, data: bytes) -> Any:
        ...

    def encode(self, obj: Any) -> bytes:
        ...

    def decompress(self, data: bytes) -> bytes:
        ...


class JsonCodec:
    """JSON payloads, zlib-compressed on the wire."""

    decode_errors: Tuple[Type[BaseException], ...] = (ValueError, UnicodeDecodeError, zlib.error)

    def decode(self, data: bytes) -> Any:
        if not data:
            raise ValueError("empty payload")
        return json.loads(data.decode("utf-8"))

    def encode(self, obj: Any) -> bytes:
        return json.dumps(obj, separators=(",", ":")).encode("utf-8")

    def decompress(self, data: bytes) -> bytes:
        return zlib.decompress(data)

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data)


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of a decode attempt: either ``value`` or ``error`` is set."""

    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


def safe_decode(
    codec: Codec, data: bytes, decoder: Optional[Callable[[bytes], Any]] = None
) -> DecodeResult:
    """Decode ``data`` without raising for payloads the codec rejects.

    ``decoder`` replaces ``codec.decode`` when the payload needs further
    validation; it signals rejection with one of ``codec.decode_errors``.
    """
    try:
        return DecodeResult(ok=True, value=(decoder or codec.decode)(data))
    except codec.decode_errors as exc:
        return DecodeResult(ok=False, error=exc)
