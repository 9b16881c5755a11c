import io
import json
import pickle
from datetime import datetime
from typing import Any, BinaryIO, Protocol
from uuid import UUID

from .type_spec import TypeSpec


class Codec(Protocol):
    """Converts one value to and from the byte stream of a slot file."""

    def serialize(self, type_spec: TypeSpec, value: Any, sink: BinaryIO) -> None: ...
    def deserialize(self, type_spec: TypeSpec, source: BinaryIO) -> Any: ...


TYPE_MARKER = "_hoardtype_"


def default_encoder(o: Any) -> Any:
    if isinstance(o, (set, frozenset)):
        return {TYPE_MARKER: "set", "items": list(o)}
    if isinstance(o, datetime):
        return {TYPE_MARKER: "datetime", "value": o.isoformat()}
    if isinstance(o, UUID):
        return {TYPE_MARKER: "uuid", "value": str(o)}
    raise TypeError(f"Type {type(o)} not serializable")


def default_decoder(d: dict[str, Any]) -> Any:
    if TYPE_MARKER in d:
        if d[TYPE_MARKER] == "set":
            return set(d["items"])
        if d[TYPE_MARKER] == "datetime":
            return datetime.fromisoformat(d["value"])
        if d[TYPE_MARKER] == "uuid":
            return UUID(d["value"])
    return d


class PickleCodec(Codec):
    """Stores any picklable value. Default codec for Hoard."""

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = protocol

    def serialize(self, type_spec: TypeSpec, value: Any, sink: BinaryIO) -> None:
        pickle.dump(value, sink, protocol=self.protocol)

    def deserialize(self, type_spec: TypeSpec, source: BinaryIO) -> Any:
        return pickle.load(source)


class JSONCodec(Codec):
    """
    UTF-8 JSON. Sets, datetimes and UUIDs survive a round trip through
    type markers; lists are turned back into sets/tuples when the TypeSpec
    asks for one. A decoded value whose outer type does not match the
    TypeSpec raises ValueError.
    """

    _SEQUENCE_ORIGINS = (set, frozenset, tuple)

    def serialize(self, type_spec: TypeSpec, value: Any, sink: BinaryIO) -> None:
        try:
            text = json.dumps(value, default=default_encoder)
        except TypeError as e:
            raise ValueError(f"Value is not JSON-serializable: {e}")
        sink.write(text.encode("utf-8"))

    def deserialize(self, type_spec: TypeSpec, source: BinaryIO) -> Any:
        reader = io.TextIOWrapper(source, encoding="utf-8")
        try:
            value = json.load(reader, object_hook=default_decoder)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON data: {e}")
        finally:
            # The caller owns the underlying stream.
            reader.detach()
        if type_spec.origin in self._SEQUENCE_ORIGINS and isinstance(value, list):
            value = type_spec.origin(value)
        elif type_spec.origin is float and type(value) is int:
            value = float(value)
        if not type_spec.accepts(value):
            raise ValueError(
                f"Stored JSON is {type(value).__name__}, expected {type_spec}"
            )
        return value


class BinaryCodec(Codec):
    """Raw bytes passthrough."""

    def serialize(self, type_spec: TypeSpec, value: Any, sink: BinaryIO) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError("Binary data must be bytes or bytearray")
        sink.write(bytes(value))

    def deserialize(self, type_spec: TypeSpec, source: BinaryIO) -> bytes:
        return source.read()
