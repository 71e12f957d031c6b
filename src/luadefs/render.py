"""Render finished definitions as LuaLS definition files.

Each module becomes one ``--- @meta`` unit that LuaLS loads as a library
definition.  Declarations keep their registration order and every one is
followed by a blank line.

Example output::

    --- @meta

    --- @alias Color "Red"
    ---  | "Green"
    ---  | integer

    --- @class Example
    --- Example complex type
    --- @field color Color

    --- @type Example
    example = nil

    --- @param param0 Color
    function printColor(param0) end
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pydantic import BaseModel, Field, field_validator

from luadefs.definition import (
    AliasEntry,
    ClassEntry,
    Definition,
    Definitions,
    Entry,
    FieldDef,
    FunctionEntry,
    MethodDef,
    ModuleEntry,
    ValueEntry,
)
from luadefs.names import format_key
from luadefs.types import (
    AliasRef,
    Any,
    Array,
    Boolean,
    ClassRef,
    Function,
    Integer,
    LiteralBool,
    LiteralInt,
    LiteralString,
    Nil,
    Number,
    Param,
    Return,
    String,
    Table,
    Tuple,
    TypeExpr,
    Union,
    Variadic,
)

logger = logging.getLogger(__name__)

META_MARKER = "--- @meta"
INDENT = "  "

_PRIMITIVE_NAMES: dict[type[TypeExpr], str] = {
    Nil: "nil",
    Boolean: "boolean",
    Number: "number",
    Integer: "integer",
    String: "string",
    Any: "any",
}


class RenderOptions(BaseModel):
    """Options for turning rendered modules into file names."""

    extension: str = Field(default=".d.lua", description="Appended to each module name; must start with a dot.")

    @field_validator("extension")
    @classmethod
    def _leading_dot(cls, extension: str) -> str:
        if not extension.startswith("."):
            raise ValueError("extension must start with a dot")
        return extension


def render(definitions: Definitions) -> list[tuple[str, str]]:
    """Render every module, returning ``(module_name, text)`` pairs in definition order."""
    rendered: list[tuple[str, str]] = []
    for name, definition in definitions.modules:
        text = render_definition(definition)
        logger.debug("Rendered module '%s': %d entries, %d bytes", name, len(definition.entries), len(text))
        rendered.append((name, text))
    return rendered


def iter_files(definitions: Definitions, options: RenderOptions | None = None) -> Iterator[tuple[str, str]]:
    """Yield ``(file_name, text)`` for each module, e.g. ``("init.d.lua", "--- @meta ...")``.

    Writing the files is left to the caller.
    """
    options = options or RenderOptions()
    for name, text in render(definitions):
        yield f"{name}{options.extension}", text


def render_definition(definition: Definition) -> str:
    """Render the declarations of one module."""
    lines = [META_MARKER, ""]
    for entry in definition.entries:
        lines.extend(_render_entry(entry))
        lines.append("")
    return "\n".join(lines) + "\n"


def _render_entry(entry: Entry) -> list[str]:
    if isinstance(entry, AliasEntry):
        return _render_alias(entry)
    if isinstance(entry, ClassEntry):
        return _render_class(entry)
    if isinstance(entry, ValueEntry):
        return [*_doc_block(entry.docs), f"--- @type {type_signature(entry.type)}", f"{entry.name} = nil"]
    if isinstance(entry, FunctionEntry):
        lines = _doc_block(entry.docs)
        lines.extend(_annotations(entry.params, entry.returns))
        lines.append(f"function {entry.name}({_arguments(entry.params)}) end")
        return lines
    return [*_doc_block(entry.docs), *_module_lines(entry, f"{entry.name} = ", 0)]


def _render_alias(entry: AliasEntry) -> list[str]:
    members = entry.type.members if isinstance(entry.type, Union) else (entry.type,)
    first, *rest = (type_signature(member) for member in members)
    lines = _doc_block(entry.docs)
    lines.append(f"--- @alias {entry.name} {first}")
    lines.extend(f"---  | {signature}" for signature in rest)
    return lines


def _render_class(entry: ClassEntry) -> list[str]:
    lines = _doc_block(entry.docs)
    lines.append(f"--- @class {entry.name}")
    for field in entry.fields:
        lines.extend(_doc_block(field.docs))
        lines.append(f"--- @field {format_key(field.name)} {type_signature(field.type)}")

    has_meta = entry.meta_fields or entry.meta_functions or entry.metamethods
    if not (entry.functions or entry.methods or has_meta):
        return lines

    # Callable members live on a local table named after the class
    lines.append(f"local _Class_{entry.name} = {{")
    for func in entry.functions:
        lines.extend(_member_function(func, None, INDENT))
    for method in entry.methods:
        lines.extend(_member_function(method, entry.name, INDENT))
    if has_meta:
        lines.append(f"{INDENT}__metatable = {{")
        for field in entry.meta_fields:
            lines.extend(_table_field(field, INDENT * 2))
        for func in entry.meta_functions:
            lines.extend(_member_function(func, None, INDENT * 2))
        for method in entry.metamethods:
            lines.extend(_member_function(method, entry.name, INDENT * 2))
        lines.append(f"{INDENT}}}")
    lines.append("}")
    return lines


def _module_lines(module: ModuleEntry, prefix: str, depth: int) -> list[str]:
    """Lines of ``<prefix>{ ... }`` with the braces at ``depth``."""
    outer = INDENT * depth
    inner = INDENT * (depth + 1)
    if module.is_empty():
        return [f"{outer}{prefix}{{}}"]

    lines = [f"{outer}{prefix}{{"]
    for field in module.fields:
        lines.extend(_table_field(field, inner))
    for nested in module.modules:
        lines.extend(_doc_block(nested.docs, inner))
        nested_lines = _module_lines(nested, f"{format_key(nested.name)} = ", depth + 1)
        nested_lines[-1] += ","
        lines.extend(nested_lines)
    for func in module.functions:
        lines.extend(_member_function(func, None, inner))
    for method in module.methods:
        lines.extend(_member_function(method, "table", inner))
    if module.meta_fields or module.meta_functions or module.metamethods:
        meta = INDENT * (depth + 2)
        lines.append(f"{inner}__metatable = {{")
        for field in module.meta_fields:
            lines.extend(_table_field(field, meta))
        for func in module.meta_functions:
            lines.extend(_member_function(func, None, meta))
        for method in module.metamethods:
            lines.extend(_member_function(method, "table", meta))
        lines.append(f"{inner}}},")
    lines.append(f"{outer}}}")
    return lines


def _table_field(field: FieldDef, indent: str) -> list[str]:
    lines = _doc_block(field.docs, indent)
    lines.append(f"{indent}--- @type {type_signature(field.type)}")
    lines.append(f"{indent}{format_key(field.name)} = nil,")
    return lines


def _member_function(func: MethodDef, self_type: str | None, indent: str) -> list[str]:
    lines = _doc_block(func.docs)
    if self_type is not None:
        lines.append(f"--- @param self {self_type}")
    lines.extend(_annotations(func.params, func.returns))
    arguments = _arguments(func.params)
    if self_type is not None:
        arguments = f"self, {arguments}" if arguments else "self"
    lines.append(f"{format_key(func.name)} = function({arguments}) end,")
    return [f"{indent}{line}" for line in lines]


def _doc_block(docs: tuple[str, ...], indent: str = "") -> list[str]:
    return [f"{indent}--- {line}".rstrip() for line in docs]


def _param_parts(index: int, param: Param) -> tuple[str, TypeExpr]:
    if isinstance(param.type, Variadic):
        return "...", param.type.inner
    return param.name or f"param{index}", param.type


def _arguments(params: tuple[Param, ...]) -> str:
    return ", ".join(_param_parts(i, p)[0] for i, p in enumerate(params))


def _annotations(params: tuple[Param, ...], returns: tuple[Return, ...]) -> list[str]:
    lines = []
    for i, param in enumerate(params):
        name, ty = _param_parts(i, param)
        lines.append(_with_doc(f"--- @param {name} {type_signature(ty)}", param.doc))
    for ret in returns:
        lines.append(_with_doc(f"--- @return {type_signature(ret.type)}", ret.doc))
    return lines


def _with_doc(line: str, doc: str | None) -> str:
    return f"{line} {doc}" if doc else line


def type_signature(ty: TypeExpr) -> str:
    """Render a type inline, as it appears after ``@type``, ``@field`` or ``@param``."""
    primitive = _PRIMITIVE_NAMES.get(type(ty))
    if primitive is not None:
        return primitive
    if isinstance(ty, LiteralString):
        return f'"{ty.value}"'
    if isinstance(ty, LiteralBool):
        return "true" if ty.value else "false"
    if isinstance(ty, LiteralInt):
        return str(ty.value)
    if isinstance(ty, (ClassRef, AliasRef)):
        return ty.name
    if isinstance(ty, Array):
        element = type_signature(ty.element)
        if isinstance(ty.element, (Union, Function, Variadic)):
            element = f"({element})"
        return f"{element}[]"
    if isinstance(ty, Table):
        if not ty.entries:
            return "{}"
        items = ", ".join(f"{_table_key(entry.key)}: {type_signature(entry.value)}" for entry in ty.entries)
        return f"{{ {items} }}"
    if isinstance(ty, Tuple):
        if not ty.items:
            return "{}"
        items = ", ".join(f"[{i}]: {type_signature(item)}" for i, item in enumerate(ty.items, start=1))
        return f"{{ {items} }}"
    if isinstance(ty, Function):
        params = ", ".join(
            f"{name}: {type_signature(param_type)}"
            for name, param_type in (_param_parts(i, p) for i, p in enumerate(ty.params))
        )
        signature = f"fun({params})"
        if ty.returns:
            signature += ": " + ", ".join(type_signature(r.type) for r in ty.returns)
        return signature
    if isinstance(ty, Union):
        return " | ".join(_union_member(member) for member in ty.members)
    if isinstance(ty, Variadic):
        return f"{type_signature(ty.inner)} ..."
    return type(ty).__name__


def _union_member(member: TypeExpr) -> str:
    # A function's return list would otherwise swallow the following members
    if isinstance(member, Function) and member.returns:
        return f"({type_signature(member)})"
    return type_signature(member)


def _table_key(key: TypeExpr | str | int) -> str:
    if isinstance(key, TypeExpr):
        return f"[{type_signature(key)}]"
    return format_key(key)
