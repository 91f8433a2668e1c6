# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compiler options and project-file loading.

`CompilerOptions` is frozen: a change of options means a new session, never a
mutated one.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

from weave.buildc.core.errors import ConfigurationError


def normalize_path(path: str | Path) -> str:
	"""Normalize a file identifier: posix separators, no `.`/`..` segments, no query."""
	text = str(path).replace("\\", "/").split("?", 1)[0]
	if not text:
		return text
	parts: list[str] = []
	absolute = text.startswith("/")
	for seg in PurePosixPath(text).parts:
		if seg in ("/", "."):
			continue
		if seg == "..":
			if parts and parts[-1] != "..":
				parts.pop()
			elif not absolute:
				parts.append(seg)
			continue
		parts.append(seg)
	joined = "/".join(parts)
	return f"/{joined}" if absolute else joined


@dataclass(frozen=True)
class CompilerOptions:
	"""Options shared by every session of one engine."""

	root_dir: str = "/"
	# Module file extensions, tried in order when resolving imports.
	extensions: tuple[str, ...] = (".mod", ".py")
	live_reload: bool = False
	source_map: bool = True
	declarations: bool = False
	# Unknown template members are errors when set, warnings otherwise.
	strict_templates: bool = True
	inline_styles_extension: str = "css"
	out_dir: str | None = None

	def validate(self) -> None:
		"""Structural validation; raises ConfigurationError."""
		if not isinstance(self.root_dir, str) or not self.root_dir.startswith("/"):
			raise ConfigurationError(f"root_dir must be an absolute posix path, got {self.root_dir!r}")
		if not self.extensions:
			raise ConfigurationError("extensions must not be empty")
		for ext in self.extensions:
			if not isinstance(ext, str) or not ext.startswith(".") or len(ext) < 2:
				raise ConfigurationError(f"invalid module extension {ext!r}")
		for name in ("live_reload", "source_map", "declarations", "strict_templates"):
			if not isinstance(getattr(self, name), bool):
				raise ConfigurationError(f"option '{name}' must be a boolean")
		if not isinstance(self.inline_styles_extension, str) or not self.inline_styles_extension:
			raise ConfigurationError("inline_styles_extension must be a non-empty string")
		if self.out_dir is not None and not isinstance(self.out_dir, str):
			raise ConfigurationError("out_dir must be a string")

	@classmethod
	def from_mapping(cls, data: Mapping[str, Any], *, root_dir: str | None = None) -> "CompilerOptions":
		"""Build options from a JSON-like mapping, rejecting unknown keys."""
		known = {f.name for f in fields(cls)}
		unknown = sorted(set(data) - known)
		if unknown:
			raise ConfigurationError(f"unknown compiler option(s): {', '.join(unknown)}")
		values = dict(data)
		if "extensions" in values:
			exts = values["extensions"]
			if isinstance(exts, str) or not isinstance(exts, (list, tuple)):
				raise ConfigurationError("extensions must be a list of strings")
			values["extensions"] = tuple(exts)
		if root_dir is not None and "root_dir" not in values:
			values["root_dir"] = root_dir
		if "root_dir" in values and isinstance(values["root_dir"], str):
			values["root_dir"] = normalize_path(values["root_dir"])
		opts = cls(**values)
		opts.validate()
		return opts


@dataclass(frozen=True)
class ProjectConfig:
	root_names: tuple[str, ...]
	options: CompilerOptions


def read_configuration(path: str | Path) -> ProjectConfig:
	"""
	Load a JSON project file.

	Shape: `{"files": [...], "include": [glob, ...], "compilerOptions": {...}}`.
	Paths are relative to the project file's directory, which is also the
	default `root_dir`.
	"""
	cfg_path = Path(path).resolve()
	try:
		raw = json.loads(cfg_path.read_text(encoding="utf-8"))
	except OSError as err:
		raise ConfigurationError(f"cannot read project file {cfg_path}: {err}") from err
	except json.JSONDecodeError as err:
		raise ConfigurationError(f"{cfg_path}: invalid JSON: {err}") from err
	if not isinstance(raw, dict):
		raise ConfigurationError(f"{cfg_path}: project file must contain an object")
	base = cfg_path.parent
	options = CompilerOptions.from_mapping(raw.get("compilerOptions") or {}, root_dir=normalize_path(base))
	names: list[str] = [normalize_path(base / f) for f in raw.get("files") or []]
	for pattern in raw.get("include") or []:
		names.extend(normalize_path(p) for p in sorted(base.glob(pattern)) if p.is_file())
	return ProjectConfig(root_names=tuple(dict.fromkeys(names)), options=options)


__all__ = ["CompilerOptions", "ProjectConfig", "normalize_path", "read_configuration"]
