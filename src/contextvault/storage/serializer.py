"""Value serialization for persistent storage backends."""

import json
from datetime import datetime
from typing import Any, Callable


class StateSerializer:
    """Utilities for serializing and deserializing stored values.

    Values are encoded as UTF-8 JSON. ``datetime`` and ``set`` objects are
    wrapped in ``{"__type__": ..., "value": ...}`` envelopes and restored on
    the way back.
    """

    _custom_decoders: dict[str, Callable[[Any], Any]] = {}

    @classmethod
    def register_decoder(cls, type_name: str, decoder: Callable[[Any], Any]) -> None:
        """Register a decoder for an enveloped ``__type__`` name."""
        cls._custom_decoders[type_name] = decoder

    @classmethod
    def serialize(cls, value: Any) -> bytes:
        """Serialize a value to bytes.

        Args:
            value: JSON-compatible value (datetimes and sets allowed)

        Returns:
            Serialized bytes
        """
        return json.dumps(
            value,
            default=cls._json_default,
            ensure_ascii=False,
        ).encode("utf-8")

    @classmethod
    def deserialize(cls, data: bytes | str) -> Any:
        """Deserialize bytes produced by :meth:`serialize`.

        Args:
            data: Serialized bytes (or an already decoded string)

        Returns:
            The stored value
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return cls._decode_custom(json.loads(data))

    @classmethod
    def _decode_custom(cls, obj: Any) -> Any:
        """Decode enveloped types in an object."""
        if isinstance(obj, dict):
            type_name = obj.get("__type__")
            if type_name in cls._custom_decoders and set(obj) == {"__type__", "value"}:
                return cls._custom_decoders[type_name](obj)
            return {k: cls._decode_custom(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [cls._decode_custom(item) for item in obj]
        return obj

    @staticmethod
    def _json_default(obj: Any) -> Any:
        """Default JSON encoder for common types."""
        if isinstance(obj, datetime):
            return {"__type__": "datetime", "value": obj.isoformat()}
        elif isinstance(obj, set):
            return {"__type__": "set", "value": sorted(obj)}
        elif hasattr(obj, "model_dump"):
            return obj.model_dump()
        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


StateSerializer.register_decoder("datetime", lambda d: datetime.fromisoformat(d["value"]))
StateSerializer.register_decoder("set", lambda d: set(d["value"]))


def serialize_value(value: Any) -> bytes:
    """Convenience function to serialize a stored value."""
    return StateSerializer.serialize(value)


def deserialize_value(data: bytes | str) -> Any:
    """Convenience function to deserialize a stored value."""
    return StateSerializer.deserialize(data)
