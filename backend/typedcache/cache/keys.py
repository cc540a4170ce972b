"""
Cache key derivation.

Keys are namespaced by the type of the item they address. The namespace
is a type signature: the bare type name for plain types, and
``Name<Arg1|Arg2|...>`` for parameterized ones, applied recursively.

Example:
    >>> item_type = TypeDescriptor("Dict", (TypeDescriptor("String"),
    ...                                     TypeDescriptor("Enumerable", (TypeDescriptor("Item"),))))
    >>> CacheKeyBuilder.build(item_type, "42").key
    'Dict<String|Enumerable<Item>>-42'
"""

import typing
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Structural stand-in for the type of a cached item.

    A name plus zero or more nested descriptors for type arguments.
    """

    name: str
    args: Tuple["TypeDescriptor", ...] = ()

    def __post_init__(self):
        # Accept any iterable of arguments but keep the instance hashable
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def is_parameterized(self) -> bool:
        return bool(self.args)

    @classmethod
    def of(cls, tp: Any) -> "TypeDescriptor":
        """
        Build a descriptor from a Python type.

        Plain classes use their ``__name__``; parameterized aliases such as
        ``Dict[str, List[Item]]`` use the name of their origin and recurse
        into their arguments.
        """
        if isinstance(tp, TypeDescriptor):
            return tp

        origin = typing.get_origin(tp)
        if origin is None:
            return cls(_type_name(tp))

        return cls(_type_name(origin), tuple(cls.of(arg) for arg in typing.get_args(tp)))

    def __str__(self) -> str:
        return type_signature(self)


def _type_name(tp: Any) -> str:
    if tp is Ellipsis:
        return "..."
    return getattr(tp, "__name__", None) or getattr(tp, "_name", None) or str(tp)


def type_signature(item_type: TypeDescriptor) -> str:
    """Render the namespace signature of a type descriptor."""
    if not item_type.args:
        return item_type.name

    return f"{item_type.name}<{'|'.join(type_signature(arg) for arg in item_type.args)}>"


@dataclass(frozen=True)
class CacheKey:
    """
    A derived cache key.

    ``key`` is the full store key when ``is_valid`` is true. For an unusable
    fragment ``is_valid`` is false and ``key`` holds the raw fragment as given.
    """

    key: Optional[str]
    is_valid: bool
    item_type: TypeDescriptor

    def __str__(self) -> str:
        return self.key or ""


class CacheKeyBuilder:
    """
    Builder for type-namespaced cache keys.

    Building never fails: an unusable fragment yields a key whose
    ``is_valid`` flag is false, which cache operations then refuse.
    """

    SEPARATOR = "-"

    @staticmethod
    def is_valid_fragment(fragment: Optional[str]) -> bool:
        """A fragment is usable when it has at least one non-whitespace character."""
        return fragment is not None and bool(fragment.strip())

    @staticmethod
    def build(item_type: Union[TypeDescriptor, Any], fragment: Optional[str]) -> CacheKey:
        """
        Build a cache key for an item type and a key fragment.

        Args:
            item_type: TypeDescriptor, or a Python type to describe
            fragment: Caller-supplied key fragment, may be None or blank

        Returns:
            CacheKey: The derived key

        Example:
            build(TypeDescriptor("Flight"), "AA123")
            # Returns: CacheKey(key="Flight-AA123", is_valid=True, ...)
        """
        descriptor = TypeDescriptor.of(item_type)

        if not CacheKeyBuilder.is_valid_fragment(fragment):
            return CacheKey(key=fragment, is_valid=False, item_type=descriptor)

        return CacheKey(
            key=f"{type_signature(descriptor)}{CacheKeyBuilder.SEPARATOR}{fragment}",
            is_valid=True,
            item_type=descriptor,
        )
