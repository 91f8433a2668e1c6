# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-file emit bound to one analyzed session.

`FileEmitter.emit(file_id)` produces code, diagnostics and (with live reload)
a hot-update module for one file. Passing the previous parse of the file as
`stale` switches to eligibility analysis only: no code is generated.

Unreadable modules are reported by analysis (`HostError` for roots); every
file the builder hands out has text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable

from weave.buildc.annotations.compiler import AnnotationCompiler
from weave.buildc.builder import AbstractBuilder
from weave.buildc.core.diagnostics import ERROR, WARNING, Diagnostic
from weave.buildc.hmr import HmrAnalyzer, StaleModule
from weave.buildc.notifier import HotUpdateNotifier
from weave.buildc.options import normalize_path
from weave.buildc.source_file import SourceFile
from weave.buildc.transformers import TransformerPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmitResult:
	content: str | None = None
	sourcemap: str | None = None
	declarations: str | None = None
	dependencies: tuple[str, ...] = ()
	errors: tuple[Diagnostic, ...] = ()
	warnings: tuple[Diagnostic, ...] = ()
	hmr_update_code: str | None = None
	hmr_eligible: bool | None = None


class DiagnosticCollector:
	"""Splits diagnostics into (errors, warnings); notes are dropped."""

	def collect(self, diagnostics: Iterable[Diagnostic]) -> tuple[tuple[Diagnostic, ...], tuple[Diagnostic, ...]]:
		errors: list[Diagnostic] = []
		warnings: list[Diagnostic] = []
		for diag in diagnostics:
			if diag.severity == ERROR:
				errors.append(diag)
			elif diag.severity == WARNING:
				warnings.append(diag)
		return tuple(errors), tuple(warnings)


class FileEmitter:
	def __init__(
		self,
		builder: AbstractBuilder,
		transformers: TransformerPipeline,
		compiler: AnnotationCompiler,
		*,
		live_reload: bool = False,
		notifier: HotUpdateNotifier | None = None,
		on_after_emit: Callable[[SourceFile], None] | None = None,
	) -> None:
		self.builder = builder
		self.transformers = transformers
		self.compiler = compiler
		self.live_reload = live_reload
		self.notifier = notifier
		self.on_after_emit = on_after_emit
		self.analyzer = HmrAnalyzer(compiler)
		self.collector = DiagnosticCollector()

	async def __call__(self, file_id: str, stale: StaleModule | None = None) -> EmitResult | None:
		return await self.emit(file_id, stale)

	async def emit(self, file_id: str, stale: StaleModule | None = None) -> EmitResult | None:
		file_id = normalize_path(file_id)
		source_file = self.builder.get_source_file(file_id)
		if source_file is None:
			return None

		if stale is not None:
			verdict = self.analyzer.analyze(stale, source_file)
			logger.debug("hmr analysis for %s: eligible=%s (%s)", file_id, verdict.eligible, verdict.reason)
			if verdict.eligible and self.notifier is not None:
				self.notifier.record(file_id, verdict.classes[-1])
			return EmitResult(
				dependencies=(),
				hmr_eligible=verdict.eligible,
				hmr_update_code=verdict.update_code,
			)

		program = self.builder.get_program()
		diagnostics = [
			*program.get_syntactic_diagnostics(source_file),
			*self.builder.get_semantic_diagnostics(source_file),
			*self.compiler.get_diagnostics_for_file(source_file),
		]
		errors, warnings = self.collector.collect(diagnostics)

		hmr_update_code: str | None = None
		if self.live_reload:
			analysis = self.compiler.get_file_analysis(file_id)
			hot = analysis.hot_reloadable_classes if analysis is not None else ()
			if hot:
				hmr_update_code = self.compiler.emit_hot_update_module(source_file)
				if self.notifier is not None:
					self.notifier.record(file_id, hot[-1].class_name)

		outputs: Dict[str, str] = {}
		self.builder.emit(source_file, outputs.__setitem__, self.transformers)
		content = sourcemap = declarations = None
		for name, data in outputs.items():
			if name.endswith(".map"):
				sourcemap = data
			elif name.endswith(".pyi"):
				declarations = data
			elif name.endswith(".py"):
				content = data

		if self.on_after_emit is not None:
			self.on_after_emit(source_file)

		return EmitResult(
			content=content,
			sourcemap=sourcemap,
			declarations=declarations,
			dependencies=self.compiler.get_resource_dependencies(file_id),
			errors=errors,
			warnings=warnings,
			hmr_update_code=hmr_update_code,
		)


__all__ = ["DiagnosticCollector", "EmitResult", "FileEmitter"]
