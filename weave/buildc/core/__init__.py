# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared diagnostics, spans and error types."""

from .diagnostics import Diagnostic, ERROR, WARNING, NOTE, has_errors
from .errors import BuildError, ConfigurationError, HostError
from .span import Span

__all__ = [
	"Diagnostic",
	"ERROR",
	"WARNING",
	"NOTE",
	"has_errors",
	"BuildError",
	"ConfigurationError",
	"HostError",
	"Span",
]
