# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parsed module representation.

A SourceFile is immutable; a changed file is represented by a new SourceFile
with a higher version, never by mutating an existing one.
"""

from __future__ import annotations

import ast
import hashlib
from dataclasses import dataclass, field

from weave.buildc.core.diagnostics import Diagnostic, error
from weave.buildc.core.span import Span


@dataclass(frozen=True, eq=False)
class SourceFile:
	file_id: str
	text: str
	version: int
	tree: ast.Module | None
	parse_diagnostics: tuple[Diagnostic, ...] = ()
	content_hash: str = field(default="")

	@property
	def ok(self) -> bool:
		return self.tree is not None


def parse_source_file(file_id: str, text: str, version: int) -> SourceFile:
	"""Parse module text; syntax errors become parser diagnostics, not exceptions."""
	digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
	try:
		tree = ast.parse(text, filename=file_id)
	except SyntaxError as err:
		span = Span(file=file_id, line=err.lineno, column=err.offset)
		diag = error(f"syntax error: {err.msg}", code="E-SYNTAX", phase="parser", span=span)
		return SourceFile(file_id, text, version, None, (diag,), digest)
	return SourceFile(file_id, text, version, tree, (), digest)


__all__ = ["SourceFile", "parse_source_file"]
