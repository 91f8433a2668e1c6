# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Emit-time AST transformer pipeline.

A transformer is either an `ast.NodeTransformer` instance or a callable
`(tree, source_file) -> tree`. Phases run in order: `before` (ahead of and
including annotation lowering), `after`, then `after_declarations` on the
declaration stub.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence, Union

if TYPE_CHECKING:
	from weave.buildc.source_file import SourceFile

Transformer = Union[ast.NodeTransformer, Callable[[ast.Module, "SourceFile"], ast.Module]]


@dataclass(frozen=True)
class TransformerPipeline:
	before: tuple[Transformer, ...] = ()
	after: tuple[Transformer, ...] = ()
	after_declarations: tuple[Transformer, ...] = ()

	@classmethod
	def of(
		cls,
		before: Sequence[Transformer] = (),
		after: Sequence[Transformer] = (),
		after_declarations: Sequence[Transformer] = (),
	) -> "TransformerPipeline":
		return cls(tuple(before), tuple(after), tuple(after_declarations))


def merge_transformers(first: TransformerPipeline, second: TransformerPipeline) -> TransformerPipeline:
	"""Concatenate phase by phase; `first`'s transformers run earlier."""
	return TransformerPipeline(
		before=first.before + second.before,
		after=first.after + second.after,
		after_declarations=first.after_declarations + second.after_declarations,
	)


def apply_transformers(
	transformers: Sequence[Transformer],
	tree: ast.Module,
	source_file: "SourceFile",
) -> ast.Module:
	for transformer in transformers:
		if isinstance(transformer, ast.NodeTransformer):
			result = transformer.visit(tree)
		else:
			result = transformer(tree, source_file)
		if not isinstance(result, ast.Module):
			raise TypeError(f"transformer {transformer!r} must return an ast.Module")
		tree = ast.fix_missing_locations(result)
	return tree


__all__ = ["Transformer", "TransformerPipeline", "apply_transformers", "merge_transformers"]
