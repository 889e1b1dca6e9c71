"""Tests for the cfdef grammar parser."""

import pytest
from lark.exceptions import UnexpectedInput

from cfdecode.errors import GrammarError
from cfdecode.grammar import AttribType, ClassRef, TypeRegistry, parse


def describe_parse():
    def loads_every_class(expect, grammar_text):
        registry = parse(grammar_text)

        expect([c.name for c in registry]) == ["CFObject", "CFString", "CFArray", "Node", "Panel"]
        expect(registry.find_by_name("Node").id) == 200

    def reads_ancestor_annotation(expect, grammar_text):
        base = parse(grammar_text).find_by_name("CFString").attributes[0]

        expect(base.ancestor) == True
        expect(isinstance(base.type, ClassRef)) == True
        expect(base.type.class_name) == "CFObject"

    def reads_masks_and_counts(expect, grammar_text):
        node = parse(grammar_text).find_by_name("Node")

        expect([(m.name, m.value) for m in node.masks]) == [("HasLabel", 1), ("HasExtra", 2)]
        label = node.get_attribute("label")
        expect(label.mask) == 1
        expect(label.pointer_target.class_name) == "CFString"
        extra = node.get_attribute("extra")
        expect(extra.type) == AttribType.U16
        expect(extra.count) == 2
        expect(extra.mask) == 2

    def reads_arrays_and_targets(expect, grammar_text):
        panel = parse(grammar_text).find_by_name("Panel")

        children = panel.get_attribute("children")
        expect(children.array) == True
        expect(children.type) == AttribType.POINTER
        expect(children.pointer_target.class_name) == "Node"
        expect(panel.get_attribute("codes").pointer_target) == AttribType.U16
        expect(panel.get_attribute("gid").array) == False
        expect(panel.get_attribute("blob").padding) == 2

    def flattens_parsed_classes(expect, grammar_text):
        string = parse(grammar_text).find_by_name("CFString")

        names = [a.name for a in string.flat_attributes]
        expect(names) == ["ObjectType", "ExtensionCount", "RootType", "Size", "cfData"]
        expect(string.size) == 12

    def adds_to_existing_registry(expect):
        registry = TypeRegistry()
        parse("class A = 1 { x: U8 }", registry)
        parse("class B = 0x10 { base: A @ancestor\n y: S16 }", registry)

        expect(len(registry)) == 2
        expect(registry.find_by_id(16).size) == 3

    def allows_empty_grammar(expect):
        expect(len(parse("# nothing here\n"))) == 0

    def rejects_unknown_annotation(expect):
        with pytest.raises(GrammarError) as excinfo:
            parse("class A = 1 { x: U8 @optional }")
        expect("Unknown annotation @optional" in str(excinfo.value)) == True

    def rejects_mask_without_value(expect):
        with pytest.raises(GrammarError):
            parse("class A = 1 { x: U8 @mask }")

    def rejects_array_of_scalars(expect):
        with pytest.raises(GrammarError):
            parse("class A = 1 { items: U16[] -> Node }")

    def rejects_untargeted_pointer(expect):
        with pytest.raises(GrammarError):
            parse("class A = 1 { next: Pointer }")

    def reports_syntax_errors(expect):
        with pytest.raises(UnexpectedInput):
            parse("class A { x: U8 }")
