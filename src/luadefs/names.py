"""Name validation and table-key escaping for the LuaLS annotation grammar."""

from __future__ import annotations

import re
from enum import Enum

from luadefs.errors import InvalidIdentifier

LUA_KEYWORDS = frozenset(
    {
        "and", "break", "do", "else", "elseif", "end", "false", "for", "function", "goto", "if",
        "in", "local", "nil", "not", "or", "repeat", "return", "then", "true", "until", "while",
    }
)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Characters a ["..."] key or a "..." literal cannot hold without a real escape syntax
_UNQUOTABLE = ('"', "\\", "\n", "\r")


class MetaMethod(str, Enum):
    """Lua metatable events a class or module may declare."""

    ADD = "__add"
    SUB = "__sub"
    MUL = "__mul"
    DIV = "__div"
    MOD = "__mod"
    POW = "__pow"
    UNM = "__unm"
    IDIV = "__idiv"
    BAND = "__band"
    BOR = "__bor"
    BXOR = "__bxor"
    BNOT = "__bnot"
    SHL = "__shl"
    SHR = "__shr"
    CONCAT = "__concat"
    LEN = "__len"
    EQ = "__eq"
    LT = "__lt"
    LE = "__le"
    INDEX = "__index"
    NEWINDEX = "__newindex"
    CALL = "__call"
    TO_STRING = "__tostring"
    NAME = "__name"
    PAIRS = "__pairs"
    IPAIRS = "__ipairs"
    ITER = "__iter"
    CLOSE = "__close"
    GC = "__gc"
    MODE = "__mode"


def is_identifier(name: str) -> bool:
    """Return True if ``name`` can be written as a bare Lua table key."""
    return bool(_IDENTIFIER_RE.fullmatch(name)) and name not in LUA_KEYWORDS


def format_key(key: str | int) -> str:
    """Render a table key: ``name``, ``["odd.name"]`` or ``[1]``."""
    if isinstance(key, int):
        return f"[{key}]"
    if is_identifier(key):
        return key
    return f'["{key}"]'


def is_quotable(text: str) -> bool:
    return not any(ch in text for ch in _UNQUOTABLE)


def check_key(name: str) -> str:
    """Validate a field, method or string table key."""
    if not name:
        raise InvalidIdentifier(name, "names cannot be empty")
    if not is_quotable(name):
        raise InvalidIdentifier(name, "quotes, backslashes and line breaks cannot be escaped in a key")
    return name


def check_type_name(name: str) -> str:
    """Validate an alias, class or module name."""
    if not _IDENTIFIER_RE.fullmatch(name):
        raise InvalidIdentifier(name, "type names must be plain Lua identifiers")
    if name in LUA_KEYWORDS:
        raise InvalidIdentifier(name, "type names cannot be Lua keywords")
    return name


def check_global_name(name: str) -> str:
    """Validate a global value or function name; dotted paths like ``string.trim`` are allowed."""
    if not name or not all(is_identifier(part) for part in name.split(".")):
        raise InvalidIdentifier(name, "globals must be identifiers or dotted identifier paths")
    return name


def check_param_name(name: str) -> str:
    if name != "..." and not is_identifier(name):
        raise InvalidIdentifier(name, "parameter names must be identifiers or '...'")
    return name


def check_metamethod(name: str | MetaMethod) -> str:
    try:
        return MetaMethod(name).value
    except ValueError:
        raise InvalidIdentifier(str(name), "not a Lua metamethod") from None


def check_module_name(name: str) -> str:
    """Validate the name of an output unit; it becomes part of a file name."""
    if not name or name in (".", ".."):
        raise InvalidIdentifier(name, "module names cannot be empty or relative path markers")
    if "/" in name or "\\" in name:
        raise InvalidIdentifier(name, "module names cannot contain path separators")
    return name
