# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compilation session: one analyzed program for a fixed root set and options.

A session is never mutated into a different root set or option set; a change
of either means a new session. The previous session's `ProgramSnapshot` is
handed to the new one so that unchanged files keep their import resolution,
annotation analysis and cached diagnostics.

Outside watch mode the session builds with `AbstractBuilder`: a single build
gains nothing from incremental bookkeeping.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from weave.buildc.annotations.compiler import AnnotationCompiler
from weave.buildc.builder import AbstractBuilder, IncrementalBuilder
from weave.buildc.core.errors import ConfigurationError
from weave.buildc.emitter import FileEmitter
from weave.buildc.host import Host, ensure_host
from weave.buildc.notifier import HotUpdateNotifier
from weave.buildc.options import CompilerOptions, normalize_path
from weave.buildc.program import Program
from weave.buildc.source_file import SourceFile
from weave.buildc.transformers import TransformerPipeline, merge_transformers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramSnapshot:
	"""Result of `analyze()`; input to the next session."""

	program: Program
	compiler: AnnotationCompiler
	builder: AbstractBuilder

	@property
	def incremental(self) -> bool:
		return isinstance(self.builder, IncrementalBuilder)


class CompilationSession:
	def __init__(
		self,
		root_names: tuple[str, ...],
		options: CompilerOptions,
		host: Host,
		previous: ProgramSnapshot | None = None,
		*,
		watch_mode: bool = False,
		notifier: HotUpdateNotifier | None = None,
	) -> None:
		self.root_names = root_names
		self.options = options
		self.host = host
		self.watch_mode = watch_mode
		self.notifier = notifier
		self._previous = previous
		self._snapshot: ProgramSnapshot | None = None

	@classmethod
	def initialize(
		cls,
		root_names: Iterable[str],
		options: CompilerOptions,
		host: Host,
		previous: ProgramSnapshot | None = None,
		*,
		watch_mode: bool = False,
		notifier: HotUpdateNotifier | None = None,
	) -> "CompilationSession":
		"""Validate inputs and create a session; nothing is read yet."""
		if not isinstance(options, CompilerOptions):
			raise ConfigurationError(f"options must be CompilerOptions, got {type(options).__name__}")
		options.validate()
		ensure_host(host)
		roots = tuple(dict.fromkeys(normalize_path(r) for r in root_names if str(r).strip()))
		if not roots:
			raise ConfigurationError("no root modules to compile")
		return cls(roots, options, host, previous, watch_mode=watch_mode, notifier=notifier)

	@property
	def snapshot(self) -> ProgramSnapshot | None:
		return self._snapshot

	async def analyze(self) -> ProgramSnapshot:
		"""Load and analyze the program; must complete before any emit."""
		if self._snapshot is not None:
			return self._snapshot
		started = time.perf_counter()
		previous = self._previous
		program = Program(self.root_names, self.options, self.host, previous.program if previous else None)
		compiler = AnnotationCompiler(program, self.host, self.options, previous.compiler if previous else None)
		await compiler.analyze_async()
		if self.watch_mode:
			old_builder = previous.builder if previous is not None and previous.incremental else None
			builder: AbstractBuilder = IncrementalBuilder(program, old_builder)  # type: ignore[arg-type]
		else:
			builder = AbstractBuilder(program)
		self._snapshot = ProgramSnapshot(program, compiler, builder)
		self._previous = None
		logger.debug(
			"session analyzed %d module(s) in %.1f ms (watch=%s)",
			len(program.get_source_files()),
			(time.perf_counter() - started) * 1000.0,
			self.watch_mode,
		)
		return self._snapshot

	def get_emitter(
		self,
		transformers: TransformerPipeline = TransformerPipeline(),
		*,
		on_after_emit: Callable[[SourceFile], None] | None = None,
	) -> FileEmitter:
		"""Bind a FileEmitter to this session's builder and the merged pipeline."""
		if self._snapshot is None:
			raise RuntimeError("analyze() must complete before emitting")
		snapshot = self._snapshot
		pipeline = merge_transformers(transformers, snapshot.compiler.prepare_emit())
		return FileEmitter(
			snapshot.builder,
			pipeline,
			snapshot.compiler,
			live_reload=self.options.live_reload,
			notifier=self.notifier,
			on_after_emit=on_after_emit,
		)


__all__ = ["CompilationSession", "ProgramSnapshot"]
