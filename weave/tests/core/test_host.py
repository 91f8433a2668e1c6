# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from weave.buildc.core.errors import HostError
from weave.buildc.host import CachingHost, ResourceHost, compose_host, ensure_host
from weave.buildc.source_cache import SourceFileCache
from weave.tests.support.memory_host import MemoryHost, options


def test_resolve_relative_and_absolute_imports() -> None:
	host = MemoryHost(
		{
			"/app/pkg/a.mod": "",
			"/app/pkg/b.mod": "",
			"/app/pkg/sub/__init__.mod": "",
			"/app/util.py": "",
		}
	)
	opts = options()
	assert host.resolve_module_name("b", 1, "/app/pkg/a.mod", opts) == "/app/pkg/b.mod"
	assert host.resolve_module_name("sub", 1, "/app/pkg/a.mod", opts) == "/app/pkg/sub/__init__.mod"
	assert host.resolve_module_name("util", 2, "/app/pkg/a.mod", opts) == "/app/util.py"
	assert host.resolve_module_name("pkg.b", 0, "/app/main.mod", opts) == "/app/pkg/b.mod"
	assert host.resolve_module_name("json", 0, "/app/main.mod", opts) is None


def test_extension_order_decides_between_candidates() -> None:
	host = MemoryHost({"/app/m.mod": "", "/app/m.py": ""})
	assert host.resolve_module_name("m", 0, "/app/x.mod", options()) == "/app/m.mod"
	assert host.resolve_module_name("m", 0, "/app/x.mod", options(extensions=(".py", ".mod"))) == "/app/m.py"


def test_resource_urls_resolve_against_containing_file() -> None:
	host = MemoryHost()
	assert host.resolve_resource("./a.html", "/app/cmp/a.mod") == "/app/cmp/a.html"
	assert host.resolve_resource("../shared/x.css", "/app/cmp/a.mod") == "/app/shared/x.css"
	assert host.resolve_resource("/abs/y.css", "/app/cmp/a.mod") == "/abs/y.css"


@pytest.mark.asyncio
async def test_resource_host_transforms_styles_only() -> None:
	calls: list[tuple[str, str]] = []

	async def upper(text: str, filename: str) -> str:
		calls.append((text, filename))
		return text.upper()

	base = MemoryHost({"/app/a.css": "p{}", "/app/a.html": "<p></p>"})
	host = ResourceHost(base, upper, inline_styles_extension="scss")
	assert await host.read_resource("/app/a.css", "style") == "P{}"
	assert await host.read_resource("/app/a.html", "template") == "<p></p>"
	assert await host.transform_inline_style("b{}", "/app/a.mod") == "B{}"
	assert calls == [("p{}", "/app/a.css"), ("b{}", "/app/a.mod.scss")]


@pytest.mark.asyncio
async def test_resource_host_without_transform_passes_text_through() -> None:
	host = ResourceHost(MemoryHost({"/app/a.css": "p{}"}))
	assert await host.read_resource("/app/a.css", "style") == "p{}"
	assert await host.read_resource("/app/missing.css", "style") is None
	assert await host.transform_inline_style("b{}", "/app/a.mod") == "b{}"


def test_compose_host_wraps_layers_in_order() -> None:
	base = MemoryHost({"/app/a.mod": "x = 1\n"})
	cache = SourceFileCache()
	host = compose_host(base, lambda inner: CachingHost(inner, cache), ResourceHost)
	assert isinstance(host, ResourceHost)
	assert isinstance(host.inner, CachingHost)
	assert host.inner.inner is base
	assert host.get_source_file("/app/a.mod") is cache.get("/app/a.mod")
	assert host.get_default_lib_file_name() == "weave.runtime"


def test_ensure_host_rejects_missing_capabilities() -> None:
	class Partial:
		def read_file(self, path):
			return None

	with pytest.raises(HostError, match="file_exists"):
		ensure_host(Partial())
	host = MemoryHost()
	assert ensure_host(host) is host
