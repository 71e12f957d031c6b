"""Tests for the definition builders."""

import pytest

from luadefs.definition import ClassBuilder, Definition, Definitions, DefinitionsBuilder, DocQueue, ModuleBuilder
from luadefs.errors import DuplicateName, InvalidIdentifier
from luadefs.names import MetaMethod
from luadefs.types import INTEGER, STRING, alias_ref, class_ref, optional, union


def test_doc_queue_drains():
    queue = DocQueue()
    queue.push("first\nsecond")
    assert len(queue) == 2
    assert queue.drain() == ("first", "second")
    assert queue.drain() == ()


def test_document_attaches_to_next_field():
    def build(cls):
        cls.document("x").field("a", int)
        cls.field("b", str)
        cls.document("y")

    entry = Definition.builder().register_class("Example", build).finish().get("Example")
    assert entry.fields[0].docs == ("x",)
    assert entry.fields[1].docs == ()
    assert entry.docs == ()
    assert all("y" not in f.docs for f in entry.fields)


def test_document_attaches_to_methods_and_metamethods():
    def build(cls):
        cls.document("print all items").function("printAll")
        cls.document("rename").method("rename", [("name", str)])
        cls.document("as text").metamethod(MetaMethod.TO_STRING, returns=str)

    entry = Definition.builder().register_class("Example", build).finish().get("Example")
    assert entry.functions[0].docs == ("print all items",)
    assert entry.methods[0].docs == ("rename",)
    assert entry.metamethods[0].name == "__tostring"
    assert entry.metamethods[0].docs == ("as text",)


def test_class_documentation_is_consolidated():
    def build(cls):
        cls.add_documentation("From the builder")

    entry = Definition.builder().register_class("Example", build, docs="From the registry").finish().get("Example")
    assert entry.docs == ("From the registry", "From the builder")


def test_class_accepts_populated_builder():
    cls = ClassBuilder().field("next", optional(class_ref("Node")))
    entry = Definition.builder().register_class("Node", cls).finish().get("Node")
    assert entry.fields[0].type == union(class_ref("Node"), None)


def test_duplicate_alias():
    builder = Definition.builder().register_alias("Color", int)
    with pytest.raises(DuplicateName) as err:
        builder.register_alias("Color", str)
    assert err.value.name == "Color"
    assert builder.finish().get("Color").type == INTEGER


def test_names_are_unique_across_entry_kinds():
    builder = Definition.builder().register_value("example", str)
    with pytest.raises(DuplicateName):
        builder.register_function("example")


def test_duplicate_member_leaves_registry_untouched():
    def build(cls):
        cls.field("color", int)
        cls.method("color")

    builder = Definition.builder()
    with pytest.raises(DuplicateName):
        builder.register_class("Example", build)
    assert "Example" not in builder

    builder.register_class("Example", lambda cls: cls.field("color", int))
    assert builder.finish().names == ["Example"]


def test_failed_registration_keeps_pending_docs():
    cls = ClassBuilder().field("a", int).document("kept")
    with pytest.raises(DuplicateName):
        cls.field("a", str)
    cls.field("b", str)
    entry = Definition.builder().register_class("Example", cls).finish().get("Example")
    assert entry.fields[1].docs == ("kept",)


def test_metamethods_have_their_own_namespace():
    cls = ClassBuilder().method("__tostring").metamethod("__tostring")
    with pytest.raises(DuplicateName):
        cls.metamethod("__tostring")
    with pytest.raises(InvalidIdentifier):
        cls.metamethod("__nope")
    with pytest.raises(InvalidIdentifier):
        cls.metamethod("__metatable")


def test_metatable_members_share_a_namespace():
    cls = ClassBuilder().meta_field("__index", class_ref("Base")).meta_function("new")
    with pytest.raises(DuplicateName):
        cls.metamethod("__index")
    with pytest.raises(DuplicateName):
        cls.meta_field("new", int)
    cls.function("new")

    entry = cls.finish("Derived")
    assert [f.name for f in entry.meta_fields] == ["__index"]
    assert [f.name for f in entry.meta_functions] == ["new"]
    assert [f.name for f in entry.functions] == ["new"]


def test_invalid_identifiers():
    builder = Definition.builder()
    with pytest.raises(InvalidIdentifier):
        builder.register_alias("my alias", int)
    with pytest.raises(InvalidIdentifier):
        builder.register_value("end", int)
    with pytest.raises(InvalidIdentifier):
        builder.register_class("", lambda cls: None)
    with pytest.raises(InvalidIdentifier):
        builder.register_function("greet", params=[("not valid", str)])
    with pytest.raises(InvalidIdentifier):
        ClassBuilder().field("", int)

    # A trailing newline is not part of an identifier
    with pytest.raises(InvalidIdentifier):
        builder.register_alias("Color\n", int)
    with pytest.raises(InvalidIdentifier):
        builder.register_function("greet\n")
    with pytest.raises(InvalidIdentifier):
        builder.register_function("greet", params=[("a\n", str)])
    with pytest.raises(InvalidIdentifier):
        class_ref("Node\n")

    builder.register_function("string.trim", params=[("s", str)], returns=str)
    assert builder.finish().names == ["string.trim"]


def test_registration_order_is_kept():
    definition = (
        Definition.builder()
        .register_function("zeta")
        .register_alias("Alpha", str)
        .register_value("middle", alias_ref("Alpha"))
        .finish()
    )
    assert definition.names == ["zeta", "Alpha", "middle"]


def test_finished_builders_reject_registration():
    builder = Definition.builder()
    builder.finish()
    with pytest.raises(RuntimeError):
        builder.register_alias("Color", int)

    cls = ClassBuilder()
    cls.finish("Example")
    with pytest.raises(RuntimeError):
        cls.field("a", int)


def test_module_builder():
    def nested(mod):
        mod.function("hello", [("name", str)])

    def build(mod):
        mod.document("Some test data").field("data", str)
        mod.document("Nested module").module("nested", nested)
        mod.method("greet")
        mod.meta_field("__count", int)

    entry = Definition.builder().register_module("test", build).finish().get("test")
    assert entry.fields[0].docs == ("Some test data",)
    assert entry.modules[0].name == "nested"
    assert entry.modules[0].docs == ("Nested module",)
    assert entry.modules[0].functions[0].name == "hello"
    assert entry.meta_fields[0].type == INTEGER


def test_failed_nested_module_leaves_name_free():
    def broken(mod):
        mod.field("a", int).field("a", int)

    def build(mod):
        with pytest.raises(DuplicateName):
            mod.module("nested", broken)
        mod.module("nested", lambda m: m.field("a", int))

    entry = Definition.builder().register_module("test", build).finish().get("test")
    assert [m.name for m in entry.modules] == ["nested"]


def test_nested_module_from_finished_builder_leaves_state_untouched():
    finished = ModuleBuilder()
    finished.finish("done")

    def build(mod):
        mod.document("kept")
        with pytest.raises(RuntimeError):
            mod.module("nested", finished)
        mod.module("nested", lambda m: m.field("a", int))

    entry = Definition.builder().register_module("test", build).finish().get("test")
    assert [m.name for m in entry.modules] == ["nested"]
    assert entry.modules[0].docs == ("kept",)


def test_definitions_keep_module_order():
    defs = (
        Definitions.builder()
        .define("init", Definition.builder().register_value("a", str))
        .define("extra", Definition.builder().finish())
        .finish()
    )
    assert defs.names == ["init", "extra"]
    assert defs.get("init").get("a").type == STRING
    assert defs.get("missing") is None


def test_duplicate_module_name():
    builder = DefinitionsBuilder().define("init", Definition.builder())
    with pytest.raises(DuplicateName):
        builder.define("init", Definition.builder())
    with pytest.raises(InvalidIdentifier):
        builder.define("types/init", Definition.builder())
    assert builder.finish().names == ["init"]


def test_define_rejects_other_values():
    with pytest.raises(TypeError):
        DefinitionsBuilder().define("init", "not a definition")
