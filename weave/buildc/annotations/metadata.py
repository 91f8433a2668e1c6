# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Extraction of annotation metadata from class declarations.

An annotated class is a top-level `ClassDef` decorated with `@component(...)`,
`@directive(...)` or `@injectable` (bare or called, plain name or attribute).
Keyword values must be Python literals; anything else is a diagnostic, never
an exception.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any

from weave.buildc.core.diagnostics import Diagnostic, error, warning
from weave.buildc.core.span import Span

from .syntax import AnnotationSyntaxError, CssSelector, parse_host_key, parse_selector

HOT_RELOADABLE_KINDS = frozenset({"component", "directive"})

ANNOTATION_KEYS: dict[str, frozenset[str]] = {
	"component": frozenset(
		{"selector", "inputs", "outputs", "host", "template", "template_url", "styles", "style_urls"}
	),
	"directive": frozenset({"selector", "inputs", "outputs", "host"}),
	"injectable": frozenset({"provided_in"}),
}

HOST_LISTENER = "host_listener"


@dataclass(frozen=True)
class HostBindings:
	listeners: tuple[tuple[str, str], ...] = ()
	properties: tuple[tuple[str, str], ...] = ()
	attributes: tuple[tuple[str, str], ...] = ()

	def to_literal(self) -> dict:
		return {
			"listeners": self.listeners,
			"properties": self.properties,
			"attributes": self.attributes,
		}


@dataclass(frozen=True)
class ClassMetadata:
	class_name: str
	kind: str
	span: Span
	selector: str | None = None
	selectors: tuple[CssSelector, ...] = ()
	inputs: tuple[str, ...] = ()
	outputs: tuple[str, ...] = ()
	host: HostBindings = field(default_factory=HostBindings)
	template: str | None = None
	# 1-based line of the inline template string in the module.
	template_line: int | None = None
	template_url: str | None = None
	styles: tuple[str, ...] = ()
	style_urls: tuple[str, ...] = ()
	provided_in: str | None = None

	@property
	def hot_reloadable(self) -> bool:
		return self.kind in HOT_RELOADABLE_KINDS


def annotation_kind(decorator: ast.expr) -> str | None:
	target = decorator.func if isinstance(decorator, ast.Call) else decorator
	if isinstance(target, ast.Name):
		name = target.id
	elif isinstance(target, ast.Attribute):
		name = target.attr
	else:
		return None
	return name if name in ANNOTATION_KEYS else None


def is_annotation_decorator(decorator: ast.expr) -> bool:
	return annotation_kind(decorator) is not None


def is_host_listener(decorator: ast.expr) -> bool:
	if not isinstance(decorator, ast.Call):
		return False
	target = decorator.func
	name = target.id if isinstance(target, ast.Name) else getattr(target, "attr", None)
	return name == HOST_LISTENER


def annotated_classes(tree: ast.Module) -> list[ast.ClassDef]:
	return [
		node
		for node in tree.body
		if isinstance(node, ast.ClassDef) and any(is_annotation_decorator(d) for d in node.decorator_list)
	]


def class_members(node: ast.ClassDef) -> set[str]:
	"""Names declared on the class body or assigned through `self.` in methods."""
	members: set[str] = set()
	for stmt in node.body:
		if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			members.add(stmt.name)
			for sub in ast.walk(stmt):
				targets: list[ast.expr] = []
				if isinstance(sub, ast.Assign):
					targets = sub.targets
				elif isinstance(sub, (ast.AnnAssign, ast.AugAssign)):
					targets = [sub.target]
				for target in targets:
					if (
						isinstance(target, ast.Attribute)
						and isinstance(target.value, ast.Name)
						and target.value.id == "self"
					):
						members.add(target.attr)
		elif isinstance(stmt, ast.Assign):
			for target in stmt.targets:
				if isinstance(target, ast.Name):
					members.add(target.id)
		elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
			members.add(stmt.target.id)
		elif isinstance(stmt, ast.ClassDef):
			members.add(stmt.name)
	return members


def _literal(value: ast.expr) -> Any:
	return ast.literal_eval(value)


def _is_str_seq(value: Any) -> bool:
	return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def extract_metadata(
	node: ast.ClassDef,
	file_id: str,
	members: set[str] | None = None,
) -> tuple[ClassMetadata | None, list[Diagnostic]]:
	"""
	Read the annotation on `node`; returns (None, diags) when it is unusable.

	`members` is the class's member set including inherited names; when
	omitted only the class body is consulted.
	"""
	diags: list[Diagnostic] = []
	decorators = [d for d in node.decorator_list if is_annotation_decorator(d)]
	if not decorators:
		return None, diags
	span = Span.from_loc(decorators[0], file_id)
	if len(decorators) > 1:
		diags.append(
			error(
				f"class '{node.name}' carries more than one annotation",
				code="E-ANN-MULTIPLE",
				phase="annotations",
				span=Span.from_loc(decorators[1], file_id),
			)
		)
		return None, diags
	decorator = decorators[0]
	kind = annotation_kind(decorator)
	assert kind is not None
	values: dict[str, Any] = {}
	value_nodes: dict[str, ast.expr] = {}
	if isinstance(decorator, ast.Call):
		if decorator.args:
			diags.append(
				error(
					f"@{kind} accepts keyword arguments only",
					code="E-ANN-POSITIONAL",
					phase="annotations",
					span=span,
				)
			)
			return None, diags
		for kw in decorator.keywords:
			kw_span = Span.from_loc(kw.value, file_id)
			if kw.arg is None:
				diags.append(
					error(f"@{kind} does not accept '**' arguments", code="E-ANN-SPREAD", phase="annotations", span=kw_span)
				)
				return None, diags
			if kw.arg not in ANNOTATION_KEYS[kind]:
				diags.append(
					warning(f"unknown key '{kw.arg}' in @{kind}", code="W-ANN-KEY", phase="annotations", span=kw_span)
				)
				continue
			try:
				values[kw.arg] = _literal(kw.value)
			except (ValueError, TypeError, SyntaxError):
				diags.append(
					error(
						f"value of '{kw.arg}' in @{kind} must be a literal",
						code="E-ANN-LITERAL",
						phase="annotations",
						span=kw_span,
					)
				)
				return None, diags
			value_nodes[kw.arg] = kw.value

	def bad_type(key: str, expected: str) -> Diagnostic:
		return error(
			f"'{key}' in @{kind} must be {expected}",
			code="E-ANN-TYPE",
			phase="annotations",
			span=Span.from_loc(value_nodes[key], file_id),
		)

	for key in ("selector", "template", "template_url", "provided_in"):
		if key in values and not isinstance(values[key], str):
			diags.append(bad_type(key, "a string"))
	for key in ("inputs", "outputs", "style_urls"):
		if key in values and not _is_str_seq(values[key]):
			diags.append(bad_type(key, "a list of strings"))
	if "styles" in values:
		if isinstance(values["styles"], str):
			values["styles"] = (values["styles"],)
		elif not _is_str_seq(values["styles"]):
			diags.append(bad_type("styles", "a string or a list of strings"))
	if "host" in values and not (
		isinstance(values["host"], dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in values["host"].items())
	):
		diags.append(bad_type("host", "a mapping of strings"))
	if diags and any(d.is_error for d in diags):
		return None, diags

	selectors: tuple[CssSelector, ...] = ()
	if kind in HOT_RELOADABLE_KINDS:
		if "selector" not in values:
			diags.append(error(f"@{kind} requires a 'selector'", code="E-ANN-SELECTOR", phase="annotations", span=span))
		else:
			try:
				selectors = parse_selector(values["selector"])
			except AnnotationSyntaxError as err:
				diags.append(
					error(str(err), code="E-ANN-SELECTOR", phase="annotations", span=Span.from_loc(value_nodes["selector"], file_id))
				)
	if kind == "component":
		has_inline = "template" in values
		has_url = "template_url" in values
		if has_inline == has_url:
			diags.append(
				error(
					"@component requires exactly one of 'template' or 'template_url'",
					code="E-ANN-TEMPLATE",
					phase="annotations",
					span=span,
				)
			)

	listeners: list[tuple[str, str]] = []
	properties: list[tuple[str, str]] = []
	attributes: list[tuple[str, str]] = []
	for key, expr in (values.get("host") or {}).items():
		try:
			host_key = parse_host_key(key)
		except AnnotationSyntaxError as err:
			diags.append(error(str(err), code="E-ANN-HOST", phase="annotations", span=Span.from_loc(value_nodes["host"], file_id)))
			continue
		bucket = {"listener": listeners, "property": properties, "attribute": attributes}[host_key.kind]
		bucket.append((host_key.name, expr))
	for stmt in node.body:
		if not isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			continue
		for dec in stmt.decorator_list:
			if not is_host_listener(dec):
				continue
			if len(dec.args) != 1 or not isinstance(dec.args[0], ast.Constant) or not isinstance(dec.args[0].value, str):
				diags.append(
					error(
						"@host_listener takes a single event name string",
						code="E-ANN-HOST",
						phase="annotations",
						span=Span.from_loc(dec, file_id),
					)
				)
				continue
			listeners.append((dec.args[0].value, f"{stmt.name}()"))

	if members is None:
		members = class_members(node)
	for key in ("inputs", "outputs"):
		for name in values.get(key, ()):
			if name not in members:
				diags.append(
					warning(
						f"{key[:-1]} '{name}' is not declared on class '{node.name}'",
						code="W-ANN-BINDING",
						phase="annotations",
						span=Span.from_loc(value_nodes[key], file_id),
					)
				)
	if any(d.is_error for d in diags):
		return None, diags

	template_node = value_nodes.get("template")
	meta = ClassMetadata(
		class_name=node.name,
		kind=kind,
		span=span,
		selector=values.get("selector"),
		selectors=selectors,
		inputs=tuple(values.get("inputs", ())),
		outputs=tuple(values.get("outputs", ())),
		host=HostBindings(tuple(listeners), tuple(properties), tuple(attributes)),
		template=values.get("template"),
		template_line=template_node.lineno if template_node is not None else None,
		template_url=values.get("template_url"),
		styles=tuple(values.get("styles", ())),
		style_urls=tuple(values.get("style_urls", ())),
		provided_in=values.get("provided_in"),
	)
	return meta, diags


__all__ = [
	"ANNOTATION_KEYS",
	"HOT_RELOADABLE_KINDS",
	"ClassMetadata",
	"HostBindings",
	"annotation_kind",
	"annotated_classes",
	"class_members",
	"extract_metadata",
	"is_annotation_decorator",
	"is_host_listener",
]
