from typing import Any, Hashable, Iterable

from regkit.errors import PreconditionError

__all__ = [
    "Marker",
    "freeze",
    "contains_all",
    "contains_any",
    "are_equal_sets",
    "set_union",
]


class Marker:
    """A named constant that is equal only to itself.

    Copying or unpickling a marker returns the very same object, so markers
    keep their identity inside copied automata and regex arrays.
    """

    _registry: dict[str, "Marker"] = {}

    def __new__(cls, name: str, text: str):
        if name in cls._registry:
            return cls._registry[name]
        marker = super().__new__(cls)
        marker.name = name
        marker.text = text
        cls._registry[name] = marker
        return marker

    def __reduce__(self):
        return Marker, (self.name, self.text)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<{self.name}>"


def freeze(value: Any) -> Hashable:
    """Hashable value-equal copy of ``value``.

    Lists and tuples become tuples, sets become frozensets and dicts become
    frozensets of their items, recursively. Scalars are kept as they are, so
    Python's numeric equality applies: ``True``, ``1`` and ``1.0`` are the
    same state or symbol.
    """
    if isinstance(value, Marker):
        return value
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    if isinstance(value, dict):
        return frozenset((freeze(k), freeze(v)) for k, v in value.items())
    try:
        hash(value)
    except TypeError as e:
        raise PreconditionError(f"Value {value!r} can't be used as a state or symbol") from e
    return value


def contains_all(container: Iterable[Any], items: Iterable[Any]) -> bool:
    pool = set(container)
    return all(item in pool for item in items)


def contains_any(container: Iterable[Any], items: Iterable[Any]) -> bool:
    pool = set(container)
    return any(item in pool for item in items)


def are_equal_sets(first: Iterable[Any], second: Iterable[Any]) -> bool:
    return set(first) == set(second)


def set_union(first: Iterable[Any], second: Iterable[Any]) -> list[Any]:
    # keeps first-occurrence order
    res = []
    seen = set()
    for item in (*first, *second):
        if item not in seen:
            seen.add(item)
            res.append(item)
    return res
