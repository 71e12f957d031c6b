"""Pydantic models describing Lua types the way LuaLS annotations spell them.

Every descriptor is a frozen model, so two descriptors built from the same
parts compare equal and hash equal.  That structural equality is what lets
:func:`union` flatten and deduplicate its members deterministically.

Host types take part through :func:`describe`: a ``TypeExpr`` describes
itself, the Python builtins ``str``/``int``/``float``/``bool``/``None`` map to
Lua primitives, plain values map to literal types, and anything exposing a
``lua_type()`` callable (see :class:`Describable`) supplies its own descriptor.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from luadefs.errors import DuplicateName, EmptyUnion, InvalidIdentifier
from luadefs.names import check_key, check_param_name, check_type_name, is_quotable


class TypeExpr(BaseModel):
    """Base class of every Lua type descriptor."""

    model_config = ConfigDict(frozen=True)

    def __or__(self, other: object) -> TypeExpr:
        return union(self, other)

    def __ror__(self, other: object) -> TypeExpr:
        return union(other, self)


class Nil(TypeExpr):
    """``nil``"""


class Boolean(TypeExpr):
    """``boolean``"""


class Number(TypeExpr):
    """``number``"""


class Integer(TypeExpr):
    """``integer``"""


class String(TypeExpr):
    """``string``"""


class Any(TypeExpr):
    """``any``, for values the host does not constrain."""


class LiteralString(TypeExpr):
    """A string literal type, e.g. ``"Black"``."""

    value: str

    @field_validator("value")
    @classmethod
    def _quotable(cls, value: str) -> str:
        if not is_quotable(value):
            raise InvalidIdentifier(value, "string literals cannot contain quotes, backslashes or line breaks")
        return value


class LiteralInt(TypeExpr):
    """An integer literal type, e.g. ``3``."""

    value: int = Field(strict=True)


class LiteralBool(TypeExpr):
    """``true`` or ``false`` as a type."""

    value: bool = Field(strict=True)


NIL = Nil()
BOOLEAN = Boolean()
NUMBER = Number()
INTEGER = Integer()
STRING = String()
ANY = Any()


class Array(TypeExpr):
    """A homogeneous sequence: ``T[]``."""

    element: TypeExpr


class TableEntry(BaseModel):
    """One ``key: value`` pair of a table literal type."""

    model_config = ConfigDict(frozen=True)

    key: TypeExpr | str | int = Field(
        description="A type (map form ``[K]``), a string field name, or an integer index.",
    )
    value: TypeExpr


class Table(TypeExpr):
    """A table literal type with ordered entries."""

    entries: tuple[TableEntry, ...] = ()


class Tuple(TypeExpr):
    """A fixed-length table, rendered as ``{ [1]: A, [2]: B }``."""

    items: tuple[TypeExpr, ...] = ()


class Param(BaseModel):
    """A function parameter."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, description="Parameter name; unnamed params render as param{i}.")
    type: TypeExpr = Field(description="Parameter type.")
    doc: str | None = Field(default=None, description="Trailing description on the @param line.")

    @field_validator("name")
    @classmethod
    def _valid_name(cls, name: str | None) -> str | None:
        return name if name is None else check_param_name(name)


class Return(BaseModel):
    """A function return value."""

    model_config = ConfigDict(frozen=True)

    type: TypeExpr = Field(description="Return type.")
    doc: str | None = Field(default=None, description="Trailing description on the @return line.")


class Function(TypeExpr):
    """A function type: ``fun(a: A): R``."""

    params: tuple[Param, ...] = ()
    returns: tuple[Return, ...] = ()


class ClassRef(TypeExpr):
    """A reference to a class by name.  Never resolved, so cycles are fine."""

    name: str

    @field_validator("name")
    @classmethod
    def _valid_name(cls, name: str) -> str:
        return check_type_name(name)


class AliasRef(TypeExpr):
    """A reference to an alias by name."""

    name: str

    @field_validator("name")
    @classmethod
    def _valid_name(cls, name: str) -> str:
        return check_type_name(name)


class Union(TypeExpr):
    """Alternatives ``A | B``; members are flattened and deduplicated in first-seen order."""

    members: tuple[TypeExpr, ...]

    @field_validator("members")
    @classmethod
    def _normalize(cls, members: tuple[TypeExpr, ...]) -> tuple[TypeExpr, ...]:
        flat: list[TypeExpr] = []
        seen: set[TypeExpr] = set()
        for member in members:
            for item in member.members if isinstance(member, Union) else (member,):
                if item not in seen:
                    seen.add(item)
                    flat.append(item)
        if not flat:
            raise EmptyUnion()
        return tuple(flat)


class Variadic(TypeExpr):
    """Any number of values of one type (``...``)."""

    inner: TypeExpr


@runtime_checkable
class Describable(Protocol):
    """A host type that knows its own Lua type descriptor."""

    @classmethod
    def lua_type(cls) -> TypeExpr: ...


_BUILTIN_TYPES: dict[type, TypeExpr] = {
    str: STRING,
    int: INTEGER,
    float: NUMBER,
    bool: BOOLEAN,
    type(None): NIL,
}


def describe(host: object) -> TypeExpr:
    """Return the Lua type descriptor for ``host``.

    ``host`` may be a descriptor, one of the builtin types ``str``, ``int``,
    ``float``, ``bool`` or ``NoneType``, a literal value (``"Black"``, ``3``,
    ``True``, ``None``) or an object implementing :class:`Describable`.

    Raises:
        TypeError: If ``host`` has no descriptor.
    """
    if isinstance(host, TypeExpr):
        return host
    if isinstance(host, type) and host in _BUILTIN_TYPES:
        return _BUILTIN_TYPES[host]
    lua_type = getattr(host, "lua_type", None)
    if callable(lua_type):
        described = lua_type()
        if not isinstance(described, TypeExpr):
            raise TypeError(f"{host!r}.lua_type() returned {described!r}, not a TypeExpr")
        return described
    if host is None or isinstance(host, (str, int)):
        return literal(host)
    raise TypeError(f"No Lua type descriptor for {host!r}")


def literal(value: str | int | bool | None) -> TypeExpr:
    """Build the literal type for a value: ``"text"``, ``3``, ``true`` or ``nil``."""
    if value is None:
        return NIL
    if isinstance(value, bool):
        return LiteralBool(value=value)
    if isinstance(value, int):
        return LiteralInt(value=value)
    if isinstance(value, str):
        return LiteralString(value=value)
    raise TypeError(f"Cannot build a literal type from {value!r}")


def union(*members: object) -> TypeExpr:
    """Combine types into a union.

    Nested unions are flattened and repeated members dropped, keeping the
    first occurrence.  When a single distinct member remains it is returned
    as is.

    Raises:
        EmptyUnion: If called without members.
    """
    combined = Union(members=tuple(describe(m) for m in members))
    if len(combined.members) == 1:
        return combined.members[0]
    return combined


def optional(inner: object) -> TypeExpr:
    """``T | nil``"""
    return union(inner, NIL)


def array(element: object) -> Array:
    return Array(element=describe(element))


def variadic(inner: object) -> Variadic:
    return Variadic(inner=describe(inner))


def tuple_of(*items: object) -> Tuple:
    return Tuple(items=tuple(describe(item) for item in items))


def class_ref(name: str) -> ClassRef:
    return ClassRef(name=name)


def alias_ref(name: str) -> AliasRef:
    return AliasRef(name=name)


def table(entries: Mapping[object, object] | Iterable[tuple[object, object]] = ()) -> Table:
    """Build a table literal type.

    Keys may be field names (``str``), integer indices or types (map form).

    Example::

        table({"name": str, "age": int})   # { name: string, age: integer }
        table([(1, int), (2, int)])        # { [1]: integer, [2]: integer }

    Raises:
        DuplicateName: If a key appears twice.
    """
    pairs = entries.items() if isinstance(entries, Mapping) else entries
    built: list[TableEntry] = []
    seen: set[object] = set()
    for key, value in pairs:
        table_key = _table_key(key)
        marker = (type(table_key), table_key)
        if marker in seen:
            raise DuplicateName(str(key), "table literal")
        seen.add(marker)
        built.append(TableEntry(key=table_key, value=describe(value)))
    return Table(entries=tuple(built))


def map_of(key: object, value: object) -> Table:
    """``{ [K]: V }``"""
    return Table(entries=(TableEntry(key=describe(key), value=describe(value)),))


def _table_key(key: object) -> TypeExpr | str | int:
    if isinstance(key, bool):
        raise TypeError("Boolean table keys are not supported")
    if isinstance(key, str):
        return check_key(key)
    if isinstance(key, int):
        return key
    return describe(key)


def param(name: str | None, type: object, doc: str | None = None) -> Param:
    return Param(name=name, type=describe(type), doc=doc)


def coerce_params(params: Iterable[object]) -> tuple[Param, ...]:
    """Normalize parameters given as ``Param``, ``(name, type[, doc])`` or a bare type."""
    result: list[Param] = []
    for item in params:
        if isinstance(item, Param):
            result.append(item)
        elif isinstance(item, tuple) and len(item) in (2, 3) and isinstance(item[0], str):
            result.append(param(*item))
        else:
            result.append(Param(type=describe(item)))
    return tuple(result)


def coerce_returns(returns: object) -> tuple[Return, ...]:
    """Normalize return values; a single non-sequence value means one return."""
    items = returns if isinstance(returns, (list, tuple)) else (returns,)
    return tuple(item if isinstance(item, Return) else Return(type=describe(item)) for item in items)


def function(params: Iterable[object] = (), returns: object = ()) -> Function:
    """Build a function type, e.g. ``function([("name", str)], [bool])``."""
    return Function(params=coerce_params(params), returns=coerce_returns(returns))
