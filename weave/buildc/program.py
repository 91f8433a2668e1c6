# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Module graph for one root set under fixed options.

A Program loads the root modules and every project module they import
(transitively) through the host. When built from a previous Program, files
whose SourceFile object is unchanged keep their previous import records as
long as every import still resolves to the same target.
"""

from __future__ import annotations

import ast
import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

from weave.buildc.core.diagnostics import Diagnostic, error
from weave.buildc.core.errors import HostError
from weave.buildc.core.span import Span
from weave.buildc.host import Host
from weave.buildc.options import CompilerOptions, normalize_path
from weave.buildc.source_file import SourceFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportRef:
	module: str
	level: int
	# Names bound by `from ... import a, b`; empty for `import x`.
	names: tuple[str, ...]
	resolved: str | None
	span: Span

	@property
	def external(self) -> bool:
		"""Absolute imports that do not resolve inside the project."""
		return self.level == 0 and self.resolved is None


def _collect_imports(source_file: SourceFile, host: Host, options: CompilerOptions) -> tuple[ImportRef, ...]:
	refs: list[ImportRef] = []
	if source_file.tree is None:
		return ()
	file_id = source_file.file_id
	for node in ast.walk(source_file.tree):
		if isinstance(node, ast.Import):
			for alias in node.names:
				resolved = host.resolve_module_name(alias.name, 0, file_id, options)
				refs.append(ImportRef(alias.name, 0, (), resolved, Span.from_loc(node, file_id)))
		elif isinstance(node, ast.ImportFrom):
			module = node.module or ""
			names = tuple(alias.name for alias in node.names)
			span = Span.from_loc(node, file_id)
			if not module:
				# `from . import b` may name submodules rather than members.
				remaining: list[str] = []
				for name in names:
					sub = host.resolve_module_name(name, node.level, file_id, options)
					if sub is not None:
						refs.append(ImportRef(name, node.level, (), sub, span))
					else:
						remaining.append(name)
				if not remaining:
					continue
				names = tuple(remaining)
			resolved = host.resolve_module_name(module, node.level, file_id, options)
			refs.append(ImportRef(module, node.level, names, resolved, span))
	return tuple(refs)


def module_exports(tree: ast.Module) -> set[str]:
	"""Top-level names a module binds."""
	names: set[str] = set()
	for stmt in tree.body:
		if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
			names.add(stmt.name)
		elif isinstance(stmt, ast.Assign):
			for target in stmt.targets:
				for sub in ast.walk(target):
					if isinstance(sub, ast.Name):
						names.add(sub.id)
		elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
			names.add(stmt.target.id)
		elif isinstance(stmt, (ast.Import, ast.ImportFrom)):
			for alias in stmt.names:
				names.add((alias.asname or alias.name).split(".")[0])
	return names


class Program:
	def __init__(
		self,
		root_names: Sequence[str],
		options: CompilerOptions,
		host: Host,
		old_program: "Program | None" = None,
	) -> None:
		self.root_names = tuple(root_names)
		self.options = options
		self.host = host
		self._files: Dict[str, SourceFile] = {}
		self._imports: Dict[str, tuple[ImportRef, ...]] = {}
		self._importers: Dict[str, set[str]] = {}
		self.reused_files: set[str] = set()
		self._load(old_program)

	def _reusable_imports(self, old: "Program | None", source_file: SourceFile) -> tuple[ImportRef, ...] | None:
		if old is None or old.get_source_file(source_file.file_id) is not source_file:
			return None
		refs = old._imports[source_file.file_id]
		file_id = source_file.file_id
		# Files come and go between programs; every recorded resolution must still hold.
		for ref in refs:
			if self.host.resolve_module_name(ref.module, ref.level, file_id, self.options) != ref.resolved:
				return None
			if not ref.module and ref.level:
				# `from . import b` names that were members may now be submodules.
				for name in ref.names:
					if self.host.resolve_module_name(name, ref.level, file_id, self.options) is not None:
						return None
		return refs

	def _load(self, old: "Program | None") -> None:
		queue = deque(self.root_names)
		roots = set(self.root_names)
		while queue:
			file_id = queue.popleft()
			if file_id in self._files:
				continue
			source_file = self.host.get_source_file(file_id)
			if source_file is None:
				if file_id in roots:
					raise HostError(f"cannot read root module {file_id}", path=file_id)
				logger.debug("imported module %s vanished before it could be read", file_id)
				continue
			self._files[file_id] = source_file
			refs = self._reusable_imports(old, source_file)
			if refs is None:
				refs = _collect_imports(source_file, self.host, self.options)
			else:
				self.reused_files.add(file_id)
			self._imports[file_id] = refs
			for ref in refs:
				if ref.resolved is not None:
					self._importers.setdefault(ref.resolved, set()).add(file_id)
					queue.append(ref.resolved)
		logger.debug(
			"program loaded: %d module(s), %d with reused resolution",
			len(self._files),
			len(self.reused_files),
		)

	def get_source_file(self, file_id: str) -> SourceFile | None:
		return self._files.get(normalize_path(file_id))

	def get_source_files(self) -> tuple[SourceFile, ...]:
		return tuple(self._files.values())

	def get_imports(self, file_id: str) -> tuple[ImportRef, ...]:
		return self._imports.get(normalize_path(file_id), ())

	def dependencies(self, file_id: str) -> tuple[str, ...]:
		seen: dict[str, None] = {}
		for ref in self.get_imports(file_id):
			if ref.resolved is not None and ref.resolved in self._files:
				seen.setdefault(ref.resolved, None)
		return tuple(seen)

	def transitive_dependencies(self, file_id: str) -> tuple[str, ...]:
		order: dict[str, None] = {}
		stack = list(reversed(self.dependencies(file_id)))
		while stack:
			dep = stack.pop()
			if dep in order or dep == file_id:
				continue
			order[dep] = None
			stack.extend(reversed(self.dependencies(dep)))
		return tuple(order)

	def importers(self, file_id: str) -> tuple[str, ...]:
		return tuple(sorted(self._importers.get(normalize_path(file_id), ())))

	def transitive_importers(self, file_ids: Iterable[str]) -> set[str]:
		result: set[str] = set()
		stack = [normalize_path(f) for f in file_ids]
		while stack:
			current = stack.pop()
			for importer in self._importers.get(current, ()):
				if importer not in result:
					result.add(importer)
					stack.append(importer)
		return result

	def get_syntactic_diagnostics(self, source_file: SourceFile) -> tuple[Diagnostic, ...]:
		return source_file.parse_diagnostics

	def check_imports(self, source_file: SourceFile) -> list[Diagnostic]:
		"""Unresolved relative imports and names missing from project modules."""
		diags: list[Diagnostic] = []
		for ref in self.get_imports(source_file.file_id):
			if ref.resolved is None:
				if not ref.external:
					dots = "." * ref.level
					diags.append(
						error(
							f"cannot find module '{dots}{ref.module}'",
							code="E-IMPORT",
							phase="resolve",
							span=ref.span,
						)
					)
				continue
			target = self._files.get(ref.resolved)
			if target is None or target.tree is None or not ref.names:
				continue
			exported = module_exports(target.tree)
			for name in ref.names:
				if name == "*" or name in exported:
					continue
				diags.append(
					error(
						f"module '{ref.resolved}' has no member '{name}'",
						code="E-IMPORT-NAME",
						phase="resolve",
						span=ref.span,
					)
				)
		return diags


__all__ = ["ImportRef", "Program", "module_exports"]
