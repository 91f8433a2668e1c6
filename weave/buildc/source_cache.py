# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Versioned store of parsed modules shared across rebuilds.

The cache is advisory: a miss always leads to a reparse from the host's
current text. Entries are replaced or removed, never mutated.
"""

from __future__ import annotations

import itertools
from typing import Dict, Iterable

from weave.buildc.options import normalize_path
from weave.buildc.source_file import SourceFile


class SourceFileCache:
	def __init__(self) -> None:
		self._entries: Dict[str, SourceFile] = {}
		self._versions = itertools.count(1)

	def get(self, file_id: str) -> SourceFile | None:
		return self._entries.get(normalize_path(file_id))

	def store(self, source_file: SourceFile) -> None:
		self._entries[source_file.file_id] = source_file

	def invalidate(self, file_ids: Iterable[str]) -> None:
		for file_id in file_ids:
			self._entries.pop(normalize_path(file_id), None)

	def next_version(self) -> int:
		"""Versions are strictly increasing for the lifetime of the cache."""
		return next(self._versions)

	def __contains__(self, file_id: object) -> bool:
		return isinstance(file_id, str) and normalize_path(file_id) in self._entries

	def __len__(self) -> int:
		return len(self._entries)


__all__ = ["SourceFileCache"]
