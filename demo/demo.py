"""
Demo: generate LuaLS definitions for a small embedded API.

  pip install -e ".[demo]"
  python demo.py [--out DIR]

Flow:
  1. Registers the API surface (aliases, a class, a global value, functions, a module)
  2. Renders each module and prints it
  3. Writes ``<module>.d.lua`` files into DIR (default: ./types)
"""

import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from luadefs import (
    Definition,
    Definitions,
    alias_ref,
    class_ref,
    iter_files,
    tuple_of,
    union,
    variadic,
)

SYSTEM_COLORS = ["Black", "Red", "Green", "Yellow", "Blue", "Cyan", "Magenta", "White"]

console = Console()


def parse_args():
    out = Path(__file__).resolve().parent / "types"
    i = 1
    while i < len(sys.argv):
        if sys.argv[i] == "--out" and i + 1 < len(sys.argv):
            out = Path(sys.argv[i + 1])
            i += 2
        else:
            i += 1
    return out


class Example:
    """Host-side userdata exposed to Lua as the ``Example`` class."""

    def __init__(self, color="Red"):
        self.color = color

    @classmethod
    def lua_type(cls):
        return class_ref("Example")

    @staticmethod
    def lua_members(members):
        members.add_documentation("This is a doc comment section for the overall type")
        members.document("Example complex type").field("color", alias_ref("Color"))
        members.document("print all items").function("printAll", [variadic(str)])
        members.metamethod("__tostring", returns=[str])


def build_test_module(module):
    module.document("Some test data").field("data", str)
    module.document("Nested module").module("nested", lambda nested: None)
    module.document("Greetings").function("greet", [("name", str, "Name of the person to greet")])
    module.document("Meta field").meta_field("__count", int)


def build_definitions():
    init = (
        Definition.builder()
        .register_alias("SystemColor", union(*SYSTEM_COLORS))
        .register_alias("Color", union(alias_ref("SystemColor"), int, tuple_of(int, int, int)))
        .register_class("Example", Example.lua_members)
        .register_value("example", Example, docs="Example module")
        .register_function("greet", params=[str], docs="Greet the name that was passed in")
        .register_function("printColor", params=[alias_ref("Color")], docs="Print a color and it's value")
    )
    test = Definition.builder().register_module("test", build_test_module, docs="Test module documentation")
    return Definitions.builder().define("init", init).define("test", test).finish()


def main():
    out = parse_args()
    out.mkdir(parents=True, exist_ok=True)

    for file_name, text in iter_files(build_definitions()):
        console.print(Panel(
            Syntax(text, "lua", theme="monokai", line_numbers=False),
            title=f"[bold green]{file_name}[/bold green]",
            border_style="dim",
            padding=(1, 2),
        ))
        path = out / file_name
        path.write_text(text, encoding="utf-8")
        console.print(f"  [dim]→ wrote[/dim] {path}\n")


if __name__ == "__main__":
    main()
