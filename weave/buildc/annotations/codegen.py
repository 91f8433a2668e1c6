# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Code generation for annotated classes.

Annotated classes are lowered to plain classes followed by a
`define_component(...)` registration against the runtime module. Components
also get a render function compiled from their template. Generated fragments
are produced as source text and parsed back, so every emitted construct is
ordinary Python.
"""

from __future__ import annotations

import ast
import copy
from typing import TYPE_CHECKING, Iterable, Sequence

from .metadata import is_annotation_decorator, is_host_listener
from .syntax import TemplateInterpolation, TemplatePart

if TYPE_CHECKING:
	from weave.buildc.source_file import SourceFile

	from .compiler import AnalyzedClass, AnnotationCompiler

RUNTIME_ALIAS = "_weave_rt"


def class_id(file_id: str, class_name: str) -> str:
	"""Registry key of a class in the runtime."""
	return f"{file_id}@{class_name}"


def render_function_name(class_name: str) -> str:
	return f"_weave_render_{class_name}"


def _parse_stmts(source: str) -> list[ast.stmt]:
	return ast.parse(source).body


def render_function_source(class_name: str, parts: Sequence[TemplatePart]) -> str:
	pieces: list[str] = []
	for part in parts:
		if isinstance(part, TemplateInterpolation):
			expr = "ctx." + ".".join(part.path) + ("()" if part.call else "")
			pieces.append(f"str({expr})")
		else:
			pieces.append(repr(part.text))
	body = "''.join((" + ", ".join(pieces) + ",))" if pieces else "''"
	return f"def {render_function_name(class_name)}(ctx):\n    return {body}\n"


def registration_source(file_id: str, analyzed: "AnalyzedClass") -> str:
	meta = analyzed.meta
	render = render_function_name(meta.class_name) if meta.kind == "component" else "None"
	selectors = tuple(sel.to_literal() for sel in meta.selectors)
	return (
		f"{RUNTIME_ALIAS}.define_component({meta.class_name}, "
		f"id={class_id(file_id, meta.class_name)!r}, "
		f"file={file_id!r}, "
		f"kind={meta.kind!r}, "
		f"selectors={selectors!r}, "
		f"inputs={meta.inputs!r}, "
		f"outputs={meta.outputs!r}, "
		f"host={meta.host.to_literal()!r}, "
		f"template={analyzed.template_text!r}, "
		f"styles={analyzed.styles!r}, "
		f"provided_in={meta.provided_in!r}, "
		f"render={render}, "
		"module_globals=globals())\n"
	)


def strip_annotations(node: ast.ClassDef) -> ast.ClassDef:
	"""Drop annotation decorators from the class and `@host_listener` from its methods."""
	node.decorator_list = [d for d in node.decorator_list if not is_annotation_decorator(d)]
	for stmt in node.body:
		if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			stmt.decorator_list = [d for d in stmt.decorator_list if not is_host_listener(d)]
	return node


def _runtime_import(runtime_module: str) -> ast.Import:
	return ast.Import(names=[ast.alias(name=runtime_module, asname=RUNTIME_ALIAS)])


def _prologue_length(body: Sequence[ast.stmt]) -> int:
	"""Number of leading statements (docstring, `__future__` imports) that must stay first."""
	index = 0
	if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) and isinstance(body[0].value.value, str):
		index = 1
	while index < len(body) and isinstance(body[index], ast.ImportFrom) and body[index].module == "__future__":
		index += 1
	return index


class AnnotationLowering:
	"""`before`-phase transformer replacing annotations with runtime registrations."""

	def __init__(self, compiler: "AnnotationCompiler") -> None:
		self.compiler = compiler

	def __call__(self, tree: ast.Module, source_file: "SourceFile") -> ast.Module:
		analysis = self.compiler.get_file_analysis(source_file.file_id)
		if analysis is None or not analysis.classes:
			return tree
		by_name = {c.meta.class_name: c for c in analysis.classes}
		body: list[ast.stmt] = []
		for stmt in tree.body:
			analyzed = by_name.get(stmt.name) if isinstance(stmt, ast.ClassDef) else None
			if analyzed is None:
				body.append(stmt)
				continue
			body.append(strip_annotations(stmt))
			if analyzed.meta.kind == "component":
				body.extend(_parse_stmts(render_function_source(analyzed.meta.class_name, analyzed.template)))
			body.extend(_parse_stmts(registration_source(source_file.file_id, analyzed)))
		at = _prologue_length(body)
		body.insert(at, _runtime_import(self.compiler.runtime_module))
		tree.body = body
		return tree


def build_hot_update_module(
	source_file: "SourceFile",
	classes: Iterable["AnalyzedClass"],
	runtime_module: str,
) -> str:
	"""
	Standalone patch module for the given classes of `source_file`.

	The module re-declares each class from the fresh source and hands it to
	`apply_hot_patch`, which moves the new method code onto the live class.
	It is executed by `weave.runtime.load_hot_update` inside a copy of the
	live module's globals.
	"""
	assert source_file.tree is not None
	nodes = {stmt.name: stmt for stmt in source_file.tree.body if isinstance(stmt, ast.ClassDef)}
	body: list[ast.stmt] = [_runtime_import(runtime_module)]
	for analyzed in classes:
		name = analyzed.meta.class_name
		body.append(strip_annotations(copy.deepcopy(nodes[name])))
		render = "None"
		if analyzed.meta.kind == "component":
			body.extend(_parse_stmts(render_function_source(name, analyzed.template)))
			render = render_function_name(name)
		body.extend(
			_parse_stmts(
				f"{RUNTIME_ALIAS}.apply_hot_patch({class_id(source_file.file_id, name)!r}, {name}, "
				f"render={render}, template={analyzed.template_text!r}, styles={analyzed.styles!r})\n"
			)
		)
	module = ast.fix_missing_locations(ast.Module(body=body, type_ignores=[]))
	return f"# weave hot update: {source_file.file_id}\n" + ast.unparse(module) + "\n"


__all__ = [
	"RUNTIME_ALIAS",
	"AnnotationLowering",
	"build_hot_update_module",
	"class_id",
	"registration_source",
	"render_function_name",
	"render_function_source",
	"strip_annotations",
]
