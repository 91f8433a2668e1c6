# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import ast

from weave.buildc.annotations.metadata import annotated_classes, class_members, extract_metadata

FILE = "/app/a.mod"


def _extract(source: str):
	tree = ast.parse(source)
	(node,) = annotated_classes(tree)
	return extract_metadata(node, FILE)


def _codes(diags) -> list[str]:
	return [d.code for d in diags]


def test_component_metadata() -> None:
	meta, diags = _extract(
		"@component(\n"
		"    selector='app-card, [card]',\n"
		"    inputs=['title'],\n"
		"    outputs=('closed',),\n"
		"    host={'(click)': 'toggle()', '[class.open]': 'open', 'role': 'region'},\n"
		"    template='<h1>{{ title }}</h1>',\n"
		"    styles='h1 { color: red }',\n"
		")\n"
		"class Card:\n"
		"    title = ''\n"
		"    closed = None\n"
		"    def __init__(self):\n"
		"        self.open = False\n"
		"    @host_listener('keydown.escape')\n"
		"    def dismiss(self):\n"
		"        self.open = False\n"
	)
	assert diags == []
	assert meta is not None
	assert meta.kind == "component"
	assert meta.hot_reloadable
	assert [s.element for s in meta.selectors] == ["app-card", None]
	assert meta.inputs == ("title",)
	assert meta.outputs == ("closed",)
	assert meta.host.listeners == (("click", "toggle()"), ("keydown.escape", "dismiss()"))
	assert meta.host.properties == (("class.open", "open"),)
	assert meta.host.attributes == (("role", "region"),)
	assert meta.template_line == 6
	assert meta.styles == ("h1 { color: red }",)


def test_bare_injectable_is_not_hot_reloadable() -> None:
	meta, diags = _extract("@injectable\nclass Service:\n    pass\n")
	assert diags == []
	assert meta.kind == "injectable"
	assert not meta.hot_reloadable


def test_attribute_form_decorator_is_recognized() -> None:
	meta, _ = _extract("@rt.directive(selector='[tooltip]')\nclass Tooltip:\n    pass\n")
	assert meta is not None and meta.kind == "directive"


def test_non_literal_value_is_a_diagnostic() -> None:
	meta, diags = _extract("@component(selector=make(), template='')\nclass A:\n    pass\n")
	assert meta is None
	assert _codes(diags) == ["E-ANN-LITERAL"]
	assert diags[0].span.line == 1


def test_positional_and_spread_arguments_are_rejected() -> None:
	assert _codes(_extract("@component('x')\nclass A:\n    pass\n")[1]) == ["E-ANN-POSITIONAL"]
	assert _codes(_extract("@component(**opts)\nclass A:\n    pass\n")[1]) == ["E-ANN-SPREAD"]


def test_two_annotations_on_one_class() -> None:
	meta, diags = _extract("@injectable\n@directive(selector='x')\nclass A:\n    pass\n")
	assert meta is None
	assert _codes(diags) == ["E-ANN-MULTIPLE"]
	assert diags[0].span.line == 2


def test_component_needs_selector_and_exactly_one_template() -> None:
	_, diags = _extract("@component(template='a', template_url='a.html')\nclass A:\n    pass\n")
	assert _codes(diags) == ["E-ANN-SELECTOR", "E-ANN-TEMPLATE"]


def test_bad_selector_and_host_key() -> None:
	_, diags = _extract("@directive(selector='a b', host={'(click': 'x()'})\nclass A:\n    pass\n")
	assert _codes(diags) == ["E-ANN-SELECTOR", "E-ANN-HOST"]


def test_wrong_value_types() -> None:
	_, diags = _extract("@component(selector=1, inputs='x', template='')\nclass A:\n    pass\n")
	assert _codes(diags) == ["E-ANN-TYPE", "E-ANN-TYPE"]


def test_unknown_key_and_undeclared_binding_are_warnings() -> None:
	meta, diags = _extract("@directive(selector='[x]', colour='red', inputs=['missing'])\nclass A:\n    pass\n")
	assert meta is not None
	assert _codes(diags) == ["W-ANN-KEY", "W-ANN-BINDING"]
	assert not any(d.is_error for d in diags)


def test_class_members_include_self_assignments() -> None:
	node = ast.parse(
		"class A:\n"
		"    x = 1\n"
		"    y: int\n"
		"    def m(self):\n"
		"        self.z = 2\n"
		"        other.w = 3\n"
	).body[0]
	assert class_members(node) == {"x", "y", "m", "z"}
