# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Hot-patch eligibility.

Two versions of a module are compared class by class. A class's annotation
surface is everything that configures its runtime wiring: class decorators,
bases, class-level fields, and each method's name, arguments and decorators.
Method bodies are not part of it. The whole file is eligible only if every
surface is unchanged and every changed class can be patched.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from weave.buildc.annotations.metadata import is_annotation_decorator
from weave.buildc.source_file import SourceFile

if TYPE_CHECKING:
	from weave.buildc.annotations.compiler import AnnotationCompiler

StaleModule = Union[SourceFile, ast.Module]


@dataclass(frozen=True)
class HmrVerdict:
	eligible: bool
	reason: str
	classes: tuple[str, ...] = ()
	update_code: str | None = None


def _dump(node: ast.AST) -> str:
	return ast.dump(node, include_attributes=False)


def class_surface(node: ast.ClassDef) -> tuple:
	fields: list[tuple[str, ...]] = []
	methods: list[tuple] = []
	for stmt in node.body:
		if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			methods.append(
				(
					stmt.name,
					type(stmt).__name__,
					_dump(stmt.args),
					tuple(_dump(d) for d in stmt.decorator_list),
					_dump(stmt.returns) if stmt.returns is not None else "",
				)
			)
		elif isinstance(stmt, (ast.Assign, ast.AnnAssign, ast.AugAssign, ast.ClassDef)):
			fields.append((_dump(stmt),))
	return (
		tuple(_dump(d) for d in node.decorator_list),
		tuple(_dump(b) for b in node.bases),
		tuple(_dump(k) for k in node.keywords),
		tuple(fields),
		tuple(sorted(methods)),
	)


def _module_statements(tree: ast.Module) -> list[str]:
	return [_dump(stmt) for stmt in tree.body if not isinstance(stmt, ast.ClassDef)]


def _classes(tree: ast.Module) -> dict[str, ast.ClassDef]:
	return {stmt.name: stmt for stmt in tree.body if isinstance(stmt, ast.ClassDef)}


class HmrAnalyzer:
	def __init__(self, compiler: "AnnotationCompiler") -> None:
		self.compiler = compiler

	def analyze(self, stale: StaleModule, fresh: SourceFile) -> HmrVerdict:
		stale_tree = stale.tree if isinstance(stale, SourceFile) else stale
		fresh_tree = fresh.tree
		if stale_tree is None or fresh_tree is None:
			return HmrVerdict(False, "module does not parse")
		stale_classes = _classes(stale_tree)
		fresh_classes = _classes(fresh_tree)
		if set(stale_classes) != set(fresh_classes):
			return HmrVerdict(False, "classes were added or removed")
		if _module_statements(stale_tree) != _module_statements(fresh_tree):
			return HmrVerdict(False, "module-level statements changed")
		if not any(
			is_annotation_decorator(d) for node in fresh_classes.values() for d in node.decorator_list
		):
			return HmrVerdict(False, "no annotated class")

		changed: list[str] = []
		for name, fresh_node in fresh_classes.items():
			stale_node = stale_classes[name]
			if class_surface(stale_node) != class_surface(fresh_node):
				return HmrVerdict(False, f"annotation surface of '{name}' changed")
			if _dump(stale_node) != _dump(fresh_node):
				changed.append(name)

		analysis = self.compiler.get_file_analysis(fresh.file_id)
		hot = [c.class_name for c in analysis.hot_reloadable_classes] if analysis is not None else []
		if not hot:
			return HmrVerdict(False, "no hot-reloadable class")
		for name in changed:
			if name not in hot:
				return HmrVerdict(False, f"'{name}' cannot be hot-patched")
		targets = tuple(changed) if changed else tuple(hot)
		code = self.compiler.emit_hot_update_module(fresh, targets)
		if not code:
			return HmrVerdict(False, "no patch module produced")
		return HmrVerdict(True, "method bodies changed" if changed else "no change", targets, code)


__all__ = ["HmrAnalyzer", "HmrVerdict", "StaleModule", "class_surface"]
