# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

A Span carries best-effort file/line/column info. Python `ast` nodes and lark
tokens both expose compatible attribute names, so `from_loc` handles either.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser/location object.

		`ast` nodes use `lineno`/`col_offset` (0-based columns), lark tokens use
		`line`/`column` (1-based columns); both are normalized to 1-based columns.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc
		if hasattr(loc, "lineno"):
			col = getattr(loc, "col_offset", None)
			end_col = getattr(loc, "end_col_offset", None)
			return cls(
				file=file,
				line=loc.lineno,
				column=col + 1 if col is not None else None,
				end_line=getattr(loc, "end_lineno", None),
				end_column=end_col + 1 if end_col is not None else None,
			)
		return cls(
			file=file or getattr(loc, "file", None),
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
		)

	def shifted(self, line_offset: int, column_offset: int = 0) -> "Span":
		"""Translate a span relative to an embedded fragment into file coordinates."""
		if self.line is None:
			return self
		first_line = self.line == 1
		return Span(
			file=self.file,
			line=self.line + line_offset,
			column=(self.column or 1) + (column_offset if first_line else 0),
			end_line=self.end_line + line_offset if self.end_line is not None else None,
			end_column=self.end_column,
		)


__all__ = ["Span"]
