# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Exceptions raised by the build engine.

Only structural and host failures are raised. Compile problems inside user
modules travel in band as `Diagnostic` values.
"""

from __future__ import annotations

from typing import Sequence

from .diagnostics import Diagnostic


class ConfigurationError(ValueError):
	"""Empty root set or malformed options; aborts session creation."""


class HostError(RuntimeError):
	"""A required file is unreadable or the host lacks a capability."""

	def __init__(self, message: str, *, path: str | None = None) -> None:
		super().__init__(message)
		self.path = path


class BuildError(RuntimeError):
	"""Raised by callers that refuse to consume a module with error diagnostics."""

	def __init__(self, file_id: str, diagnostics: Sequence[Diagnostic]) -> None:
		rendered = "\n".join(d.render() for d in diagnostics)
		super().__init__(f"{file_id}: compilation failed\n{rendered}")
		self.file_id = file_id
		self.diagnostics = tuple(diagnostics)


__all__ = ["ConfigurationError", "HostError", "BuildError"]
