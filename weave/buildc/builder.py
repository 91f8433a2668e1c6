# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Builders: emit wrappers over a Program.

`AbstractBuilder` keeps no state across rebuilds; it is what one-shot builds
use. `IncrementalBuilder` carries per-file signatures, cached import
diagnostics and the set of files still waiting to be emitted from the
builder of the previous rebuild, so unchanged files are not re-checked.
"""

from __future__ import annotations

import ast
import copy
import json
import logging
import posixpath
from dataclasses import dataclass
from typing import Callable, Dict

from weave.buildc.core.diagnostics import Diagnostic
from weave.buildc.program import Program
from weave.buildc.source_file import SourceFile
from weave.buildc.transformers import TransformerPipeline, apply_transformers

logger = logging.getLogger(__name__)

WriteFile = Callable[[str, str], None]


@dataclass(frozen=True)
class EmitOutput:
	emitted_files: tuple[str, ...]
	skipped: bool = False


def output_path(file_id: str, program: Program, suffix: str = ".py") -> str:
	"""Output file for `file_id`: same stem, `suffix`, under out_dir when set."""
	options = program.options
	stem, _ = posixpath.splitext(file_id)
	if options.out_dir is None:
		return stem + suffix
	rel = posixpath.relpath(stem, options.root_dir)
	return posixpath.normpath(posixpath.join(options.out_dir, rel)) + suffix


def _stub_body() -> list[ast.stmt]:
	return [ast.Expr(value=ast.Constant(value=Ellipsis))]


def build_declaration_stub(tree: ast.Module) -> ast.Module:
	"""Signature-only view of a module: imports, classes, functions and names."""

	def stub_stmts(stmts: list[ast.stmt]) -> list[ast.stmt]:
		out: list[ast.stmt] = []
		for stmt in stmts:
			if isinstance(stmt, (ast.Import, ast.ImportFrom)):
				out.append(stmt)
			elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
				stmt.body = _stub_body()
				out.append(stmt)
			elif isinstance(stmt, ast.ClassDef):
				stmt.body = stub_stmts(stmt.body) or _stub_body()
				out.append(stmt)
			elif isinstance(stmt, ast.AnnAssign):
				stmt.value = None
				stmt.simple = 1
				out.append(stmt)
			elif isinstance(stmt, ast.Assign):
				out.append(ast.Assign(targets=stmt.targets, value=ast.Constant(value=Ellipsis)))
		return out

	return ast.fix_missing_locations(ast.Module(body=stub_stmts(copy.deepcopy(tree).body), type_ignores=[]))


class AbstractBuilder:
	"""Non-incremental builder: every file is affected, nothing is remembered."""

	def __init__(self, program: Program) -> None:
		self.program = program

	def get_program(self) -> Program:
		return self.program

	def get_source_file(self, file_id: str) -> SourceFile | None:
		return self.program.get_source_file(file_id)

	def get_affected_files(self) -> tuple[str, ...]:
		return tuple(sf.file_id for sf in self.program.get_source_files())

	def get_semantic_diagnostics(self, source_file: SourceFile) -> list[Diagnostic]:
		return self.program.check_imports(source_file)

	def emit(
		self,
		source_file: SourceFile,
		write_file: WriteFile,
		transformers: TransformerPipeline = TransformerPipeline(),
	) -> EmitOutput:
		"""Run the pipeline over a copy of the module and write the outputs."""
		if source_file.tree is None:
			return EmitOutput((), skipped=True)
		options = self.program.options
		tree = copy.deepcopy(source_file.tree)
		tree = apply_transformers(transformers.before, tree, source_file)
		tree = apply_transformers(transformers.after, tree, source_file)
		out = output_path(source_file.file_id, self.program)
		written = [out]
		write_file(out, ast.unparse(tree) + "\n")
		if options.source_map:
			source_map = {
				"version": 3,
				"file": posixpath.basename(out),
				"sources": [source_file.file_id],
				"sourcesContent": [source_file.text],
				"names": [],
				"mappings": "",
			}
			write_file(out + ".map", json.dumps(source_map, sort_keys=True))
			written.append(out + ".map")
		if options.declarations:
			stub = build_declaration_stub(tree)
			stub = apply_transformers(transformers.after_declarations, stub, source_file)
			decl = output_path(source_file.file_id, self.program, ".pyi")
			write_file(decl, ast.unparse(stub) + "\n")
			written.append(decl)
		self._after_emit(source_file)
		return EmitOutput(tuple(written))

	def _after_emit(self, source_file: SourceFile) -> None:
		pass


def _signature(source_file: SourceFile) -> str:
	return source_file.content_hash


class IncrementalBuilder(AbstractBuilder):
	"""
	Builder that remembers per-file state across rebuilds.

	A file's import diagnostics are keyed on its own content hash plus the
	content hashes of its direct imports; entries whose key is unchanged are
	carried over from the previous builder. Affected files are those whose
	key changed, plus their transitive importers.
	"""

	def __init__(self, program: Program, old_builder: "IncrementalBuilder | None" = None) -> None:
		super().__init__(program)
		self._keys: Dict[str, tuple[str, ...]] = {}
		self._semantic: Dict[str, list[Diagnostic]] = {}
		self.reused_diagnostics: set[str] = set()
		for source_file in program.get_source_files():
			deps = program.dependencies(source_file.file_id)
			dep_sigs = tuple(
				_signature(program.get_source_file(dep)) for dep in deps  # type: ignore[arg-type]
			)
			self._keys[source_file.file_id] = (_signature(source_file),) + tuple(deps) + dep_sigs

		changed: set[str] = set()
		for file_id, key in self._keys.items():
			if old_builder is not None and old_builder._keys.get(file_id) == key:
				cached = old_builder._semantic.get(file_id)
				if cached is not None:
					self._semantic[file_id] = cached
					self.reused_diagnostics.add(file_id)
				continue
			changed.add(file_id)
		self._affected = changed | (program.transitive_importers(changed) & set(self._keys))
		pending = set(self._affected)
		if old_builder is not None:
			pending |= old_builder._pending_emit & set(self._keys)
		self._pending_emit = pending
		logger.debug(
			"incremental builder: %d affected, %d pending emit, %d cached diagnostics",
			len(self._affected),
			len(self._pending_emit),
			len(self.reused_diagnostics),
		)

	def get_affected_files(self) -> tuple[str, ...]:
		return tuple(fid for fid in self._keys if fid in self._affected)

	def get_pending_emit(self) -> tuple[str, ...]:
		return tuple(fid for fid in self._keys if fid in self._pending_emit)

	def get_semantic_diagnostics(self, source_file: SourceFile) -> list[Diagnostic]:
		cached = self._semantic.get(source_file.file_id)
		if cached is None:
			cached = self.program.check_imports(source_file)
			self._semantic[source_file.file_id] = cached
		return list(cached)

	def _after_emit(self, source_file: SourceFile) -> None:
		self._pending_emit.discard(source_file.file_id)


__all__ = [
	"AbstractBuilder",
	"EmitOutput",
	"IncrementalBuilder",
	"build_declaration_stub",
	"output_path",
]
