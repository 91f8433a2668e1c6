# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from weave.buildc.host import CachingHost
from weave.buildc.source_cache import SourceFileCache
from weave.buildc.source_file import parse_source_file
from weave.tests.support.memory_host import MemoryHost


def test_parse_source_file_reports_syntax_errors_in_band() -> None:
	sf = parse_source_file("/app/a.mod", "def broken(:\n", 1)
	assert sf.tree is None
	assert not sf.ok
	(diag,) = sf.parse_diagnostics
	assert diag.code == "E-SYNTAX"
	assert diag.phase == "parser"
	assert diag.span.file == "/app/a.mod"
	assert diag.span.line == 1


def test_content_hash_depends_on_text_only() -> None:
	a = parse_source_file("/app/a.mod", "x = 1\n", 1)
	b = parse_source_file("/app/b.mod", "x = 1\n", 7)
	c = parse_source_file("/app/a.mod", "x = 2\n", 2)
	assert a.content_hash == b.content_hash
	assert a.content_hash != c.content_hash


def test_caching_host_serves_same_object_without_reading() -> None:
	base = MemoryHost({"/app/a.mod": "x = 1\n"})
	cache = SourceFileCache()
	host = CachingHost(base, cache)
	first = host.get_source_file("/app/a.mod")
	second = host.get_source_file("/app/./a.mod")
	assert first is second
	assert base.reads["/app/a.mod"] == 1
	assert "/app/a.mod" in cache
	assert len(cache) == 1


def test_invalidation_forces_reparse_with_higher_version() -> None:
	base = MemoryHost({"/app/a.mod": "x = 1\n"})
	cache = SourceFileCache()
	host = CachingHost(base, cache)
	first = host.get_source_file("/app/a.mod")
	base.write("/app/a.mod", "x = 2\n")
	assert host.get_source_file("/app/a.mod") is first
	cache.invalidate(["/app/a.mod", "/app/never-cached.mod"])
	fresh = host.get_source_file("/app/a.mod")
	assert fresh is not first
	assert fresh.version > first.version
	assert fresh.text == "x = 2\n"
	assert base.reads["/app/a.mod"] == 2


def test_missing_file_is_not_cached() -> None:
	cache = SourceFileCache()
	host = CachingHost(MemoryHost(), cache)
	assert host.get_source_file("/app/nope.mod") is None
	assert len(cache) == 0
