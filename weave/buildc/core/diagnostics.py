# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for parser/annotation/driver passes.

Compile problems in user modules are always reported as `Diagnostic` values,
never raised. Severity is one of "error", "warning" or "note".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .span import Span

ERROR = "error"
WARNING = "warning"
NOTE = "note"


@dataclass(frozen=True)
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	code: str | None = None
	# Pass that produced the diagnostic: "parser", "resolve", "annotations",
	# "template" or "resource".
	phase: str | None = None
	severity: str = ERROR
	span: Span = field(default_factory=Span)
	notes: tuple[str, ...] = ()

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			object.__setattr__(self, "span", Span())

	@property
	def is_error(self) -> bool:
		return self.severity == ERROR

	def render(self) -> str:
		"""Render as `file:line:col: severity: message`."""
		line = self.span.line if self.span.line is not None else "?"
		col = self.span.column if self.span.column is not None else "?"
		return f"{self.span.file or '<unknown>'}:{line}:{col}: {self.severity}: {self.message}"

	def to_json(self) -> dict:
		"""Render a Diagnostic to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


def error(message: str, *, code: str, phase: str, span: Span | None = None) -> Diagnostic:
	return Diagnostic(message=message, code=code, phase=phase, severity=ERROR, span=span or Span())


def warning(message: str, *, code: str, phase: str, span: Span | None = None) -> Diagnostic:
	return Diagnostic(message=message, code=code, phase=phase, severity=WARNING, span=span or Span())


def has_errors(diagnostics) -> bool:
	return any(d.is_error for d in diagnostics)


__all__ = ["Diagnostic", "ERROR", "WARNING", "NOTE", "error", "warning", "has_errors"]
