# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host capability consumed by the compiler, plus its decorator layers.

The base host reads and resolves files. Collaborators may wrap it before a
session is created:

- `CachingHost` routes module reads through a shared `SourceFileCache`;
- `ResourceHost` resolves template/style references and runs an optional
  async style transform over style text.

Layers are composed explicitly with `compose_host`; each layer delegates
everything it does not override to the host it wraps.
"""

from __future__ import annotations

import itertools
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Optional

from weave.buildc.core.errors import HostError
from weave.buildc.options import CompilerOptions, normalize_path
from weave.buildc.source_cache import SourceFileCache
from weave.buildc.source_file import SourceFile, parse_source_file

StyleTransform = Callable[[str, str], Awaitable[str]]
HostFactory = Callable[["Host"], "Host"]

DEFAULT_LIB = "weave.runtime"

REQUIRED_CAPABILITIES = ("read_file", "file_exists", "resolve_module_name", "get_default_lib_file_name")


class Host(ABC):
	def __init__(self) -> None:
		self._versions = itertools.count(1)

	@abstractmethod
	def read_file(self, path: str) -> Optional[str]:
		...

	@abstractmethod
	def file_exists(self, path: str) -> bool:
		...

	def get_default_lib_file_name(self) -> str:
		"""Module the generated registration code imports."""
		return DEFAULT_LIB

	def resolve_module_name(
		self,
		module_name: str,
		level: int,
		containing_file: str,
		options: CompilerOptions,
	) -> Optional[str]:
		"""
		Resolve an import to a project file id, or None.

		Relative imports (`level > 0`) resolve against the importing file's
		directory; absolute imports resolve against `options.root_dir`.
		"""
		if level > 0:
			base = posixpath.dirname(containing_file)
			for _ in range(level - 1):
				base = posixpath.dirname(base)
		else:
			base = options.root_dir
		stem = posixpath.join(base, *module_name.split(".")) if module_name else base
		for ext in options.extensions:
			for candidate in (stem + ext, posixpath.join(stem, "__init__" + ext)):
				candidate = normalize_path(candidate)
				if self.file_exists(candidate):
					return candidate
		return None

	def get_source_file(self, file_id: str) -> Optional[SourceFile]:
		text = self.read_file(file_id)
		if text is None:
			return None
		return parse_source_file(file_id, text, next(self._versions))

	def resolve_resource(self, url: str, containing_file: str) -> str:
		if url.startswith("/"):
			return normalize_path(url)
		return normalize_path(posixpath.join(posixpath.dirname(containing_file), url))

	async def read_resource(self, path: str, kind: str) -> Optional[str]:
		return self.read_file(path)

	async def transform_inline_style(self, text: str, containing_file: str) -> str:
		return text


class HostLayer(Host):
	"""Delegating base for host decorators."""

	def __init__(self, inner: Host) -> None:
		super().__init__()
		self.inner = inner

	def read_file(self, path: str) -> Optional[str]:
		return self.inner.read_file(path)

	def file_exists(self, path: str) -> bool:
		return self.inner.file_exists(path)

	def get_default_lib_file_name(self) -> str:
		return self.inner.get_default_lib_file_name()

	def resolve_module_name(self, module_name, level, containing_file, options):
		return self.inner.resolve_module_name(module_name, level, containing_file, options)

	def get_source_file(self, file_id: str) -> Optional[SourceFile]:
		return self.inner.get_source_file(file_id)

	def resolve_resource(self, url: str, containing_file: str) -> str:
		return self.inner.resolve_resource(url, containing_file)

	async def read_resource(self, path: str, kind: str) -> Optional[str]:
		return await self.inner.read_resource(path, kind)

	async def transform_inline_style(self, text: str, containing_file: str) -> str:
		return await self.inner.transform_inline_style(text, containing_file)


class CachingHost(HostLayer):
	"""Serves parsed modules from a SourceFileCache; misses reparse and store."""

	def __init__(self, inner: Host, cache: SourceFileCache) -> None:
		super().__init__(inner)
		self.cache = cache

	def get_source_file(self, file_id: str) -> Optional[SourceFile]:
		hit = self.cache.get(file_id)
		if hit is not None:
			return hit
		text = self.read_file(file_id)
		if text is None:
			return None
		source_file = parse_source_file(file_id, text, self.cache.next_version())
		self.cache.store(source_file)
		return source_file


class ResourceHost(HostLayer):
	"""Reads template/style resources and preprocesses style text."""

	def __init__(
		self,
		inner: Host,
		style_transform: StyleTransform | None = None,
		inline_styles_extension: str = "css",
	) -> None:
		super().__init__(inner)
		self.style_transform = style_transform
		self.inline_styles_extension = inline_styles_extension

	async def read_resource(self, path: str, kind: str) -> Optional[str]:
		text = await self.inner.read_resource(path, kind)
		if text is None or kind != "style" or self.style_transform is None:
			return text
		return await self.style_transform(text, path)

	async def transform_inline_style(self, text: str, containing_file: str) -> str:
		if self.style_transform is None:
			return text
		return await self.style_transform(text, f"{containing_file}.{self.inline_styles_extension}")


class FileSystemHost(Host):
	"""Host over the local file system."""

	def read_file(self, path: str) -> Optional[str]:
		try:
			return Path(path).read_text(encoding="utf-8")
		except FileNotFoundError:
			return None
		except OSError as err:
			raise HostError(f"cannot read {path}: {err}", path=path) from err

	def file_exists(self, path: str) -> bool:
		return Path(path).is_file()


def compose_host(base: Host, *layers: HostFactory) -> Host:
	"""Wrap `base` with each layer in order; the last layer is outermost."""
	host = base
	for layer in layers:
		host = layer(host)
	return host


def ensure_host(host: object) -> Host:
	"""Raise HostError unless `host` provides every required capability."""
	missing = [name for name in REQUIRED_CAPABILITIES if not callable(getattr(host, name, None))]
	if missing:
		raise HostError(f"host is missing required capabilities: {', '.join(missing)}")
	if not isinstance(host, Host):
		raise HostError(f"host must derive from weave.buildc.host.Host, got {type(host).__name__}")
	return host


__all__ = [
	"Host",
	"HostLayer",
	"CachingHost",
	"ResourceHost",
	"FileSystemHost",
	"StyleTransform",
	"compose_host",
	"ensure_host",
	"DEFAULT_LIB",
]
