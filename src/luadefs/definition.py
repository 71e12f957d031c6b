"""Builders that collect named declarations into definition groups.

A :class:`DefinitionBuilder` registers aliases, classes, functions, values and
global modules for one output module.  Names are checked as they are
registered, so a failing call raises before anything is stored.  ``finish()``
freezes the builder into a :class:`Definition`; several of those are grouped
under module names by a :class:`DefinitionsBuilder`.

Example::

    defs = (
        Definitions.builder()
        .define(
            "init",
            Definition.builder()
            .register_alias("Color", union("Red", "Green", int))
            .register_function("printColor", params=[alias_ref("Color")]),
        )
        .finish()
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from luadefs.errors import DuplicateName
from luadefs.names import check_global_name, check_key, check_metamethod, check_module_name, check_type_name
from luadefs.types import Param, Return, TypeExpr, coerce_params, coerce_returns, describe

logger = logging.getLogger(__name__)

_B = TypeVar("_B", bound="_MemberBuilder")


def doc_lines(docs: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split documentation into one entry per rendered line."""
    if docs is None:
        return ()
    if isinstance(docs, str):
        return tuple(docs.split("\n"))
    return tuple(line for doc in docs for line in doc.split("\n"))


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FieldDef(_Frozen):
    """A typed field of a class or module."""

    name: str
    type: TypeExpr
    docs: tuple[str, ...] = ()


class MethodDef(_Frozen):
    """A function, method or metamethod attached to a class or module."""

    name: str
    params: tuple[Param, ...] = ()
    returns: tuple[Return, ...] = ()
    docs: tuple[str, ...] = ()


class AliasEntry(_Frozen):
    """``--- @alias Name Type``"""

    kind: Literal["alias"] = "alias"
    name: str
    type: TypeExpr
    docs: tuple[str, ...] = ()


class ClassEntry(_Frozen):
    """``--- @class Name`` with its fields and callable members."""

    kind: Literal["class"] = "class"
    name: str
    fields: tuple[FieldDef, ...] = Field(default=(), description="Rendered as @field lines.")
    functions: tuple[MethodDef, ...] = Field(default=(), description="Static functions, called without self.")
    methods: tuple[MethodDef, ...] = Field(default=(), description="Methods receiving the instance as self.")
    meta_fields: tuple[FieldDef, ...] = Field(default=(), description="Typed fields of the metatable.")
    meta_functions: tuple[MethodDef, ...] = Field(default=(), description="Metatable functions, called without self.")
    metamethods: tuple[MethodDef, ...] = Field(default=(), description="Metatable events, receiving self.")
    docs: tuple[str, ...] = ()


class FunctionEntry(_Frozen):
    """A global function stub."""

    kind: Literal["function"] = "function"
    name: str
    params: tuple[Param, ...] = ()
    returns: tuple[Return, ...] = ()
    docs: tuple[str, ...] = ()


class ValueEntry(_Frozen):
    """A typed global declared as ``name = nil``."""

    kind: Literal["value"] = "value"
    name: str
    type: TypeExpr
    docs: tuple[str, ...] = ()


class ModuleEntry(_Frozen):
    """A global table with fields, nested tables and functions."""

    kind: Literal["module"] = "module"
    name: str
    fields: tuple[FieldDef, ...] = ()
    modules: tuple[ModuleEntry, ...] = ()
    functions: tuple[MethodDef, ...] = ()
    methods: tuple[MethodDef, ...] = ()
    meta_fields: tuple[FieldDef, ...] = ()
    meta_functions: tuple[MethodDef, ...] = ()
    metamethods: tuple[MethodDef, ...] = ()
    docs: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (
            self.fields
            or self.modules
            or self.functions
            or self.methods
            or self.meta_fields
            or self.meta_functions
            or self.metamethods
        )


Entry = AliasEntry | ClassEntry | FunctionEntry | ValueEntry | ModuleEntry


class Definition(_Frozen):
    """The finished, ordered declarations of one output module."""

    entries: tuple[Entry, ...] = Field(default=(), description="Declarations in registration order.")

    @staticmethod
    def builder() -> DefinitionBuilder:
        return DefinitionBuilder()

    def get(self, name: str) -> Entry | None:
        """Look up an entry by name."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def is_empty(self) -> bool:
        return not self.entries


class Definitions(_Frozen):
    """Finished definitions keyed by module name, in insertion order."""

    modules: tuple[tuple[str, Definition], ...] = ()

    @staticmethod
    def builder() -> DefinitionsBuilder:
        return DefinitionsBuilder()

    def get(self, name: str) -> Definition | None:
        for module_name, definition in self.modules:
            if module_name == name:
                return definition
        return None

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.modules]


class DocQueue:
    """Documentation waiting for the next registered member."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def push(self, text: str) -> None:
        self._lines.extend(doc_lines(text))

    def peek(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def drain(self) -> tuple[str, ...]:
        lines = self.peek()
        self._lines.clear()
        return lines

    def __len__(self) -> int:
        return len(self._lines)


class _MemberBuilder:
    """Shared bookkeeping for class and module builders."""

    _scope = "members"

    def __init__(self) -> None:
        self._docs: list[str] = []
        self._queue = DocQueue()
        self._names: set[str] = set()
        self._meta_names: set[str] = set()
        self._finished = False

    def document(self: _B, text: str) -> _B:
        """Attach ``text`` to the next field or function registered on this builder."""
        self._ensure_open()
        self._queue.push(text)
        return self

    def add_documentation(self: _B, text: str) -> _B:
        """Document the class or module itself."""
        self._ensure_open()
        self._docs.extend(doc_lines(text))
        return self

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError(f"{type(self).__name__} already finished.")

    def _check_free(self, name: str, meta: bool = False) -> None:
        self._ensure_open()
        if name in (self._meta_names if meta else self._names):
            raise DuplicateName(name, f"{self._scope} metatable" if meta else self._scope)

    def _claim(self, name: str, meta: bool = False) -> None:
        self._check_free(name, meta)
        (self._meta_names if meta else self._names).add(name)

    def _field(self, name: str, type: object, meta: bool = False) -> FieldDef:
        check_key(name)
        ty = describe(type)
        self._claim(name, meta)
        return FieldDef(name=name, type=ty, docs=self._queue.drain())

    def _method(
        self,
        name: str,
        params: Iterable[object],
        returns: object,
        meta: bool = False,
        check: Callable[[str], str] = check_key,
    ) -> MethodDef:
        name = check(name)
        built_params = coerce_params(params)
        built_returns = coerce_returns(returns)
        self._claim(name, meta)
        return MethodDef(name=name, params=built_params, returns=built_returns, docs=self._queue.drain())

    def _close(self, name: str) -> None:
        self._ensure_open()
        self._finished = True
        if len(self._queue):
            logger.debug("Discarding %d pending doc line(s) on '%s'", len(self._queue), name)
            self._queue.drain()


class ClassBuilder(_MemberBuilder):
    """Collects the fields and callable members of one class.

    Fields, functions and methods share a namespace.  Everything placed in the
    metatable (meta fields, meta functions and metamethods) shares another.
    """

    _scope = "class"

    def __init__(self) -> None:
        super().__init__()
        self._fields: list[FieldDef] = []
        self._functions: list[MethodDef] = []
        self._methods: list[MethodDef] = []
        self._meta_fields: list[FieldDef] = []
        self._meta_functions: list[MethodDef] = []
        self._metamethods: list[MethodDef] = []

    def field(self, name: str, type: object) -> ClassBuilder:
        self._fields.append(self._field(name, type))
        return self

    def function(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ClassBuilder:
        self._functions.append(self._method(name, params, returns))
        return self

    def method(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ClassBuilder:
        self._methods.append(self._method(name, params, returns))
        return self

    def meta_field(self, name: str, type: object) -> ClassBuilder:
        self._meta_fields.append(self._field(name, type, meta=True))
        return self

    def meta_function(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ClassBuilder:
        self._meta_functions.append(self._method(name, params, returns, meta=True))
        return self

    def metamethod(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ClassBuilder:
        self._metamethods.append(self._method(name, params, returns, meta=True, check=check_metamethod))
        return self

    def finish(self, name: str, docs: Iterable[str] = ()) -> ClassEntry:
        check_type_name(name)
        self._close(name)
        return ClassEntry(
            name=name,
            fields=tuple(self._fields),
            functions=tuple(self._functions),
            methods=tuple(self._methods),
            meta_fields=tuple(self._meta_fields),
            meta_functions=tuple(self._meta_functions),
            metamethods=tuple(self._metamethods),
            docs=doc_lines(docs) + tuple(self._docs),
        )


class ModuleBuilder(_MemberBuilder):
    """Collects the contents of a global table."""

    _scope = "module"

    def __init__(self) -> None:
        super().__init__()
        self._fields: list[FieldDef] = []
        self._modules: list[ModuleEntry] = []
        self._functions: list[MethodDef] = []
        self._methods: list[MethodDef] = []
        self._meta_fields: list[FieldDef] = []
        self._meta_functions: list[MethodDef] = []
        self._metamethods: list[MethodDef] = []

    def field(self, name: str, type: object) -> ModuleBuilder:
        self._fields.append(self._field(name, type))
        return self

    def module(self, name: str, build: ModuleBuilder | Callable[[ModuleBuilder], object]) -> ModuleBuilder:
        """Nest a table under ``name``; pending documentation goes to the nested table."""
        check_key(name)
        self._check_free(name)
        entry = _build(ModuleBuilder, build).finish(name, self._queue.peek(), check=check_key)
        self._claim(name)
        self._queue.drain()
        self._modules.append(entry)
        return self

    def function(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ModuleBuilder:
        self._functions.append(self._method(name, params, returns))
        return self

    def method(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ModuleBuilder:
        self._methods.append(self._method(name, params, returns))
        return self

    def meta_field(self, name: str, type: object) -> ModuleBuilder:
        self._meta_fields.append(self._field(name, type, meta=True))
        return self

    def meta_function(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ModuleBuilder:
        self._meta_functions.append(self._method(name, params, returns, meta=True))
        return self

    def metamethod(self, name: str, params: Iterable[object] = (), returns: object = ()) -> ModuleBuilder:
        self._metamethods.append(self._method(name, params, returns, meta=True, check=check_metamethod))
        return self

    def finish(
        self, name: str, docs: Iterable[str] = (), check: Callable[[str], str] = check_type_name
    ) -> ModuleEntry:
        check(name)
        self._close(name)
        return ModuleEntry(
            name=name,
            fields=tuple(self._fields),
            modules=tuple(self._modules),
            functions=tuple(self._functions),
            methods=tuple(self._methods),
            meta_fields=tuple(self._meta_fields),
            meta_functions=tuple(self._meta_functions),
            metamethods=tuple(self._metamethods),
            docs=doc_lines(docs) + tuple(self._docs),
        )


def _build(factory: type[_B], build: _B | Callable[[_B], object]) -> _B:
    if isinstance(build, factory):
        return build
    builder = factory()
    build(builder)
    return builder


class DefinitionBuilder:
    """Registers named declarations for one output module.

    Every ``register_*`` method returns the builder so calls can be chained.
    Names are unique across all entry kinds.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self._finished = False

    def register_alias(self, name: str, type: object, docs: str | Iterable[str] = ()) -> DefinitionBuilder:
        self._claim(name, check_type_name)
        return self._add(AliasEntry(name=name, type=describe(type), docs=doc_lines(docs)))

    def register_class(
        self,
        name: str,
        build: ClassBuilder | Callable[[ClassBuilder], object],
        docs: str | Iterable[str] = (),
    ) -> DefinitionBuilder:
        """Register a class whose members are added by ``build``.

        ``build`` is called with a fresh :class:`ClassBuilder`; an already
        populated builder is accepted too.
        """
        self._claim(name, check_type_name)
        entry = _build(ClassBuilder, build).finish(name, doc_lines(docs))
        return self._add(entry)

    def register_function(
        self,
        name: str,
        params: Iterable[object] = (),
        returns: object = (),
        docs: str | Iterable[str] = (),
    ) -> DefinitionBuilder:
        self._claim(name, check_global_name)
        return self._add(
            FunctionEntry(
                name=name, params=coerce_params(params), returns=coerce_returns(returns), docs=doc_lines(docs)
            )
        )

    def register_value(self, name: str, type: object, docs: str | Iterable[str] = ()) -> DefinitionBuilder:
        self._claim(name, check_global_name)
        return self._add(ValueEntry(name=name, type=describe(type), docs=doc_lines(docs)))

    def register_module(
        self,
        name: str,
        build: ModuleBuilder | Callable[[ModuleBuilder], object],
        docs: str | Iterable[str] = (),
    ) -> DefinitionBuilder:
        """Register a global table built by ``build``."""
        self._claim(name, check_type_name)
        entry = _build(ModuleBuilder, build).finish(name, doc_lines(docs))
        return self._add(entry)

    def finish(self) -> Definition:
        """Freeze the registered entries; the builder accepts nothing afterwards."""
        self._ensure_open()
        self._finished = True
        return Definition(entries=tuple(self._entries.values()))

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("Definition already finished.")

    def _claim(self, name: str, check: Callable[[str], str]) -> None:
        self._ensure_open()
        check(name)
        if name in self._entries:
            raise DuplicateName(name, "definition")

    def _add(self, entry: Entry) -> DefinitionBuilder:
        self._entries[entry.name] = entry
        logger.debug("Registered %s '%s'", entry.kind, entry.name)
        return self


class DefinitionsBuilder:
    """Groups finished definitions under unique module names."""

    def __init__(self) -> None:
        self._modules: dict[str, Definition] = {}
        self._finished = False

    def define(self, name: str, definition: Definition | DefinitionBuilder) -> DefinitionsBuilder:
        """Add a definition under ``name``; a builder is finished on the spot."""
        if self._finished:
            raise RuntimeError("Definitions already finished.")
        check_module_name(name)
        if name in self._modules:
            raise DuplicateName(name, "definitions")
        if isinstance(definition, DefinitionBuilder):
            definition = definition.finish()
        elif not isinstance(definition, Definition):
            raise TypeError(f"Expected a Definition or DefinitionBuilder, got {definition!r}")
        self._modules[name] = definition
        return self

    def finish(self) -> Definitions:
        if self._finished:
            raise RuntimeError("Definitions already finished.")
        self._finished = True
        return Definitions(modules=tuple(self._modules.items()))
