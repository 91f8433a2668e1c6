# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Annotation compiler: analysis, diagnostics and emit transforms for annotated
classes of one Program.

Analysis is asynchronous because templates and styles referenced by
annotations are read through the host's resource reader. A file's analysis
from a previous compiler is reused when the file and all of its transitive
project imports are the very same SourceFile objects in both programs.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from typing import Dict, Iterable

from weave.buildc.core.diagnostics import Diagnostic, error, warning
from weave.buildc.core.span import Span
from weave.buildc.host import Host
from weave.buildc.options import CompilerOptions, normalize_path
from weave.buildc.program import Program
from weave.buildc.source_file import SourceFile
from weave.buildc.transformers import TransformerPipeline

from .codegen import AnnotationLowering, build_hot_update_module
from .metadata import ClassMetadata, annotated_classes, class_members, extract_metadata
from .syntax import AnnotationSyntaxError, TemplateInterpolation, TemplatePart, parse_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzedClass:
	meta: ClassMetadata
	template: tuple[TemplatePart, ...] = ()
	template_text: str | None = None
	styles: tuple[str, ...] = ()

	@property
	def class_name(self) -> str:
		return self.meta.class_name


@dataclass(frozen=True)
class FileAnalysis:
	file_id: str
	source_file: SourceFile
	classes: tuple[AnalyzedClass, ...]
	diagnostics: tuple[Diagnostic, ...]
	# Template/style files read while analyzing, in first-read order.
	resources: tuple[str, ...]

	def get_class(self, name: str) -> AnalyzedClass | None:
		return next((c for c in self.classes if c.class_name == name), None)

	@property
	def hot_reloadable_classes(self) -> tuple[AnalyzedClass, ...]:
		return tuple(c for c in self.classes if c.meta.hot_reloadable)


class AnnotationCompiler:
	def __init__(
		self,
		program: Program,
		host: Host,
		options: CompilerOptions,
		old_compiler: "AnnotationCompiler | None" = None,
	) -> None:
		self.program = program
		self.host = host
		self.options = options
		self.runtime_module = host.get_default_lib_file_name()
		self._old = old_compiler
		self._analysis: Dict[str, FileAnalysis] = {}
		self._global_diags: Dict[str, list[Diagnostic]] = {}
		self._analyzed = False
		self.reused_files: set[str] = set()

	@property
	def analyzed(self) -> bool:
		return self._analyzed

	async def analyze_async(self) -> None:
		for source_file in self.program.get_source_files():
			previous = self._reusable_analysis(source_file)
			if previous is not None:
				self._analysis[source_file.file_id] = previous
				self.reused_files.add(source_file.file_id)
				continue
			self._analysis[source_file.file_id] = await self._analyze_file(source_file)
		self._check_selector_uniqueness()
		self._analyzed = True
		# The previous compiler is only needed for reuse during analysis.
		self._old = None
		logger.debug(
			"annotation analysis done: %d module(s), %d reused",
			len(self._analysis),
			len(self.reused_files),
		)

	def _reusable_analysis(self, source_file: SourceFile) -> FileAnalysis | None:
		old = self._old
		if old is None:
			return None
		file_id = source_file.file_id
		previous = old._analysis.get(file_id)
		if previous is None or previous.source_file is not source_file:
			return None
		deps = self.program.transitive_dependencies(file_id)
		if deps != old.program.transitive_dependencies(file_id):
			return None
		for dep in deps:
			if self.program.get_source_file(dep) is not old.program.get_source_file(dep):
				return None
		return previous

	def _find_class(self, name: str, source_file: SourceFile, seen: set) -> tuple[ast.ClassDef, SourceFile] | None:
		key = (source_file.file_id, name)
		if key in seen or source_file.tree is None:
			return None
		seen.add(key)
		for stmt in source_file.tree.body:
			if isinstance(stmt, ast.ClassDef) and stmt.name == name:
				return stmt, source_file
		for ref in self.program.get_imports(source_file.file_id):
			if name not in ref.names or ref.resolved is None:
				continue
			target = self.program.get_source_file(ref.resolved)
			if target is not None:
				return self._find_class(name, target, seen)
		return None

	def _resolve_members(self, node: ast.ClassDef, source_file: SourceFile, seen: set) -> set[str]:
		"""Class members including those inherited from project classes."""
		members = class_members(node)
		for base in node.bases:
			if not isinstance(base, ast.Name):
				continue
			found = self._find_class(base.id, source_file, seen)
			if found is not None:
				members |= self._resolve_members(found[0], found[1], seen)
		return members

	async def _analyze_file(self, source_file: SourceFile) -> FileAnalysis:
		file_id = source_file.file_id
		if source_file.tree is None:
			return FileAnalysis(file_id, source_file, (), (), ())
		diags: list[Diagnostic] = []
		classes: list[AnalyzedClass] = []
		resources: dict[str, None] = {}
		for node in annotated_classes(source_file.tree):
			members = self._resolve_members(node, source_file, set())
			meta, meta_diags = extract_metadata(node, file_id, members)
			diags.extend(meta_diags)
			if meta is None:
				continue
			template_text = meta.template
			template_file = file_id
			line_offset = (meta.template_line or 1) - 1
			if meta.template_url is not None:
				path = self.host.resolve_resource(meta.template_url, file_id)
				resources.setdefault(path, None)
				template_text = await self.host.read_resource(path, "template")
				template_file = path
				line_offset = 0
				if template_text is None:
					diags.append(
						error(
							f"cannot read template '{meta.template_url}' ({path})",
							code="E-RESOURCE",
							phase="resource",
							span=meta.span,
						)
					)
			parts: tuple[TemplatePart, ...] = ()
			if template_text is not None:
				parts = self._check_template(meta, template_text, template_file, line_offset, members, diags)
			styles: list[str] = []
			for text in meta.styles:
				styles.append(await self.host.transform_inline_style(text, file_id))
			for url in meta.style_urls:
				path = self.host.resolve_resource(url, file_id)
				resources.setdefault(path, None)
				text = await self.host.read_resource(path, "style")
				if text is None:
					diags.append(
						error(
							f"cannot read style '{url}' ({path})",
							code="E-RESOURCE",
							phase="resource",
							span=meta.span,
						)
					)
					continue
				styles.append(text)
			classes.append(AnalyzedClass(meta, parts, template_text, tuple(styles)))
		return FileAnalysis(file_id, source_file, tuple(classes), tuple(diags), tuple(resources))

	def _check_template(
		self,
		meta: ClassMetadata,
		text: str,
		template_file: str,
		line_offset: int,
		members: set[str],
		diags: list[Diagnostic],
	) -> tuple[TemplatePart, ...]:
		try:
			parts = parse_template(text)
		except AnnotationSyntaxError as err:
			span = Span(file=template_file, line=err.line, column=err.column).shifted(line_offset)
			diags.append(error(str(err), code="E-TEMPLATE", phase="template", span=span))
			return ()
		known = members | set(meta.inputs) | set(meta.outputs)
		report = error if self.options.strict_templates else warning
		for part in parts:
			if isinstance(part, TemplateInterpolation) and part.root not in known:
				span = Span(file=template_file, line=part.line, column=part.column).shifted(line_offset)
				diags.append(
					report(
						f"'{part.root}' is not a member of '{meta.class_name}'",
						code="E-TEMPLATE-MEMBER",
						phase="template",
						span=span,
					)
				)
		return parts

	def _check_selector_uniqueness(self) -> None:
		owners: dict[tuple, tuple[str, str]] = {}
		for file_id, analysis in self._analysis.items():
			for analyzed in analysis.classes:
				meta = analyzed.meta
				if meta.kind != "component":
					continue
				key = tuple(sel.to_literal() for sel in meta.selectors)
				owner = owners.get(key)
				if owner is None:
					owners[key] = (meta.class_name, file_id)
					continue
				self._global_diags.setdefault(file_id, []).append(
					error(
						f"selector '{meta.selector}' is already used by '{owner[0]}' in {owner[1]}",
						code="E-ANN-DUPLICATE",
						phase="annotations",
						span=meta.span,
					)
				)

	def get_file_analysis(self, file_id: str) -> FileAnalysis | None:
		return self._analysis.get(normalize_path(file_id))

	def get_diagnostics_for_file(self, source_file: SourceFile) -> list[Diagnostic]:
		analysis = self._analysis.get(source_file.file_id)
		if analysis is None:
			return []
		return list(analysis.diagnostics) + list(self._global_diags.get(source_file.file_id, ()))

	def get_resource_dependencies(self, file_id: str) -> tuple[str, ...]:
		analysis = self.get_file_analysis(file_id)
		return analysis.resources if analysis is not None else ()

	def files_reading_resource(self, path: str) -> tuple[str, ...]:
		path = normalize_path(path)
		return tuple(fid for fid, analysis in self._analysis.items() if path in analysis.resources)

	def prepare_emit(self) -> TransformerPipeline:
		return TransformerPipeline(before=(AnnotationLowering(self),))

	def emit_hot_update_module(self, source_file: SourceFile, class_names: Iterable[str] | None = None) -> str | None:
		"""Patch module for the hot-reloadable classes of `source_file`, or None."""
		analysis = self._analysis.get(source_file.file_id)
		if analysis is None or analysis.source_file.tree is None:
			return None
		wanted = set(class_names) if class_names is not None else None
		targets = [c for c in analysis.hot_reloadable_classes if wanted is None or c.class_name in wanted]
		if not targets:
			return None
		return build_hot_update_module(analysis.source_file, targets, self.runtime_module)


__all__ = ["AnalyzedClass", "AnnotationCompiler", "FileAnalysis"]
