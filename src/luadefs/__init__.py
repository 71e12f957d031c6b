"""luadefs — Generate LuaLS definition files from typed descriptions of an embedded Lua API."""

# Type descriptors
from luadefs.types import (
    ANY,
    BOOLEAN,
    INTEGER,
    NIL,
    NUMBER,
    STRING,
    AliasRef,
    Any,
    Array,
    Boolean,
    ClassRef,
    Describable,
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
    TableEntry,
    Tuple,
    TypeExpr,
    Union,
    Variadic,
    alias_ref,
    array,
    class_ref,
    describe,
    function,
    literal,
    map_of,
    optional,
    param,
    table,
    tuple_of,
    union,
    variadic,
)

# Registration
from luadefs.definition import (
    AliasEntry,
    ClassBuilder,
    ClassEntry,
    Definition,
    DefinitionBuilder,
    Definitions,
    DefinitionsBuilder,
    DocQueue,
    FieldDef,
    FunctionEntry,
    MethodDef,
    ModuleBuilder,
    ModuleEntry,
    ValueEntry,
)
from luadefs.errors import DefinitionError, DuplicateName, EmptyUnion, InvalidIdentifier
from luadefs.names import MetaMethod

# Output
from luadefs.render import RenderOptions, iter_files, render, render_definition, type_signature

__all__ = [
    # Types
    "ANY",
    "BOOLEAN",
    "INTEGER",
    "NIL",
    "NUMBER",
    "STRING",
    "AliasRef",
    "Any",
    "Array",
    "Boolean",
    "ClassRef",
    "Describable",
    "Function",
    "Integer",
    "LiteralBool",
    "LiteralInt",
    "LiteralString",
    "Nil",
    "Number",
    "Param",
    "Return",
    "String",
    "Table",
    "TableEntry",
    "Tuple",
    "TypeExpr",
    "Union",
    "Variadic",
    "alias_ref",
    "array",
    "class_ref",
    "describe",
    "function",
    "literal",
    "map_of",
    "optional",
    "param",
    "table",
    "tuple_of",
    "union",
    "variadic",
    # Registration
    "AliasEntry",
    "ClassBuilder",
    "ClassEntry",
    "Definition",
    "DefinitionBuilder",
    "Definitions",
    "DefinitionsBuilder",
    "DocQueue",
    "FieldDef",
    "FunctionEntry",
    "MetaMethod",
    "MethodDef",
    "ModuleBuilder",
    "ModuleEntry",
    "ValueEntry",
    # Errors
    "DefinitionError",
    "DuplicateName",
    "EmptyUnion",
    "InvalidIdentifier",
    # Output
    "RenderOptions",
    "iter_files",
    "render",
    "render_definition",
    "type_signature",
]
