"""
Pluggable encode/decode step between cached items and stored bytes.
"""

import json
from typing import Any, Generic, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import CacheDecodeError, CacheEncodeError

ModelT = TypeVar("ModelT", bound=BaseModel)


class Serializer(Protocol):
    """Converts cache items to bytes and back."""

    def encode(self, item: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class JsonSerializer:
    """JSON serializer for plain data (dicts, lists, strings, numbers)."""

    def __init__(self, encoding: str = "utf-8", sort_keys: bool = False):
        self.encoding = encoding
        self.sort_keys = sort_keys

    def encode(self, item: Any) -> bytes:
        try:
            return json.dumps(item, sort_keys=self.sort_keys).encode(self.encoding)
        except (TypeError, ValueError) as e:
            raise CacheEncodeError(
                f"Cannot encode {type(item).__name__} as JSON: {e}",
                {"item_type": type(item).__name__},
            ) from e

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            raise CacheDecodeError(f"Cached value is not valid JSON: {e}") from e


class PydanticSerializer(Generic[ModelT]):
    """
    Serializer for a single pydantic model type.

    Items are written with ``model_dump_json`` and read back with
    ``model_validate_json``, so stored values are validated on the way out.
    """

    def __init__(self, model: Type[ModelT]):
        self.model = model

    def encode(self, item: ModelT) -> bytes:
        if not isinstance(item, self.model):
            raise CacheEncodeError(
                f"Expected {self.model.__name__}, got {type(item).__name__}",
                {"model": self.model.__name__, "item_type": type(item).__name__},
            )
        return item.model_dump_json().encode("utf-8")

    def decode(self, data: bytes) -> ModelT:
        try:
            return self.model.model_validate_json(data)
        except ValidationError as e:
            raise CacheDecodeError(
                f"Cached value does not match {self.model.__name__}",
                {"model": self.model.__name__, "errors": e.errors()},
            ) from e
