# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build engine: the long-lived owner of cache, host chain and current session.

A dev server or watcher drives the engine with change events:

	engine = BuildEngine(roots, options, FileSystemHost(), watch_mode=True)
	await engine.rebuild()
	code = await engine.transform("/app/main.mod")
	update = await engine.handle_source_change("/app/main.mod")

Rebuild policy: rebuilds and emits are serialized on one asyncio lock, so an
emit never observes a half-built session. Overlapping rebuild requests
coalesce: a request that was already covered by a rebuild which started after
it was issued returns that rebuild's snapshot instead of rebuilding again. A
started rebuild always runs to completion; there is no cancellation.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, Union

from weave.buildc.core.errors import BuildError
from weave.buildc.emitter import EmitResult, FileEmitter
from weave.buildc.hmr import StaleModule
from weave.buildc.host import CachingHost, Host, ResourceHost, StyleTransform, compose_host
from weave.buildc.notifier import HotUpdate, HotUpdateNotifier
from weave.buildc.options import CompilerOptions, normalize_path
from weave.buildc.session import CompilationSession, ProgramSnapshot
from weave.buildc.source_cache import SourceFileCache
from weave.buildc.transformers import TransformerPipeline

logger = logging.getLogger(__name__)

RootProvider = Union[Sequence[str], Callable[[], Sequence[str]]]


@dataclass(frozen=True)
class ResourceUpdate:
	resource: str
	hot_updates: tuple[HotUpdate, ...] = ()
	# Modules reading the resource that need a full reload.
	reload: tuple[str, ...] = ()


class BuildEngine:
	def __init__(
		self,
		roots: RootProvider,
		options: CompilerOptions,
		host: Host,
		*,
		watch_mode: bool = False,
		transformers: TransformerPipeline | None = None,
		notifier: HotUpdateNotifier | None = None,
		style_transform: StyleTransform | None = None,
		cache: SourceFileCache | None = None,
	) -> None:
		self.options = options
		self.watch_mode = watch_mode
		self.transformers = transformers or TransformerPipeline()
		self.notifier = notifier or HotUpdateNotifier()
		self.cache = cache or SourceFileCache()
		self._roots = roots
		self._base_host = host
		self._style_transform = style_transform
		self.host: Host = host
		self.root_names: tuple[str, ...] = ()
		self._session: CompilationSession | None = None
		self._snapshot: ProgramSnapshot | None = None
		self._emitter: FileEmitter | None = None
		self._lock = asyncio.Lock()
		self._requested = 0
		self._completed = 0
		self.setup()

	def setup(self) -> None:
		"""Recompute the root set and compose the host chain."""
		layers = []
		if self.watch_mode:
			layers.append(lambda inner: CachingHost(inner, self.cache))
		layers.append(
			lambda inner: ResourceHost(inner, self._style_transform, self.options.inline_styles_extension)
		)
		self.host = compose_host(self._base_host, *layers)
		roots = self._roots() if callable(self._roots) else self._roots
		self.root_names = tuple(dict.fromkeys(normalize_path(r) for r in roots))

	@property
	def snapshot(self) -> ProgramSnapshot | None:
		return self._snapshot

	@property
	def session(self) -> CompilationSession | None:
		return self._session

	async def rebuild(self) -> ProgramSnapshot:
		self._requested += 1
		ticket = self._requested
		async with self._lock:
			if self._snapshot is not None and self._completed >= ticket:
				logger.debug("rebuild request %d coalesced into rebuild %d", ticket, self._completed)
				return self._snapshot
			started = self._requested
			session = CompilationSession.initialize(
				self.root_names,
				self.options,
				self.host,
				self._snapshot,
				watch_mode=self.watch_mode,
				notifier=self.notifier,
			)
			snapshot = await session.analyze()
			self._session = session
			self._snapshot = snapshot
			self._emitter = session.get_emitter(self.transformers)
			self._completed = started
			return snapshot

	def invalidate(self, file_ids: Iterable[str]) -> None:
		"""Drop cached parses; takes effect on the next rebuild."""
		self.cache.invalidate(file_ids)

	async def emit(self, file_id: str, stale: StaleModule | None = None) -> EmitResult | None:
		async with self._lock:
			if self._emitter is None:
				raise RuntimeError("no session yet; await rebuild() first")
			return await self._emitter.emit(file_id, stale)

	async def transform(self, file_id: str) -> str | None:
		"""Compiled code for `file_id`; raises BuildError on error diagnostics."""
		result = await self.emit(file_id)
		if result is None:
			return None
		for diag in result.warnings:
			logger.warning("%s", diag.render())
		if result.errors:
			raise BuildError(normalize_path(file_id), result.errors)
		return result.content

	async def handle_source_change(self, file_id: str) -> HotUpdate | None:
		"""Rebuild after `file_id` changed; returns the dispatched hot update, if any."""
		file_id = normalize_path(file_id)
		stale = self.cache.get(file_id)
		self.invalidate([file_id])
		await self.rebuild()
		if stale is None:
			return None
		result = await self.emit(file_id, stale)
		if (
			self.options.live_reload
			and result is not None
			and result.hmr_eligible
			and result.hmr_update_code
			and self.notifier.get(file_id)
		):
			return self.notifier.dispatch(file_id)
		return None

	async def handle_resource_change(self, path: str) -> ResourceUpdate:
		"""Rebuild the modules whose annotations read `path` (a template or style)."""
		path = normalize_path(path)
		readers: tuple[str, ...] = ()
		if self._snapshot is not None:
			readers = self._snapshot.compiler.files_reading_resource(path)
		self.invalidate(readers)
		await self.rebuild()
		hot: list[HotUpdate] = []
		reload: list[str] = []
		for file_id in readers:
			if self.options.live_reload:
				result = await self.emit(file_id)
				if result is not None and result.hmr_update_code and not result.errors:
					update = self.notifier.dispatch(file_id)
					if update is not None:
						hot.append(update)
						continue
			reload.append(file_id)
		return ResourceUpdate(path, tuple(hot), tuple(reload))

	async def file_added(self, path: str) -> ProgramSnapshot:
		self.invalidate([path])
		self.setup()
		return await self.rebuild()

	async def file_removed(self, path: str) -> ProgramSnapshot:
		self.invalidate([path])
		self.notifier.forget(path)
		self.setup()
		return await self.rebuild()

	async def get_hot_update_code(self, component_ref: str) -> str:
		"""Patch module for `"path@Class"`; relative paths resolve against root_dir."""
		file_part = component_ref.rsplit("@", 1)[0]
		if not file_part.startswith("/"):
			file_part = posixpath.join(self.options.root_dir, file_part)
		result = await self.emit(file_part)
		return (result.hmr_update_code if result is not None else None) or ""


__all__ = ["BuildEngine", "ResourceUpdate", "RootProvider"]
