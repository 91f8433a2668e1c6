# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json

import pytest

from weave.buildc.core.errors import HostError
from weave.buildc.engine import BuildEngine
from weave.buildc.host import CachingHost
from weave.buildc.notifier import HotUpdateNotifier
from weave.buildc.session import CompilationSession
from weave.buildc.source_cache import SourceFileCache
from weave.buildc.transformers import TransformerPipeline
from weave.tests.support.memory_host import MemoryHost, options

CARD = (
	"@component(selector='x-card', inputs=['title', 'ghost'], template_url='./card.html', styles=['p{}'])\n"
	"class Card:\n"
	"    title = 'T'\n"
	"    def size(self) -> int:\n"
	"        return 1\n"
)


async def _emit(files: dict, file_id: str = "/app/card.mod", **opts):
	notifier = HotUpdateNotifier()
	engine = BuildEngine([file_id], options(**opts), MemoryHost(files), notifier=notifier)
	await engine.rebuild()
	return await engine.emit(file_id), notifier


@pytest.mark.asyncio
async def test_full_emit_outputs() -> None:
	result, notifier = await _emit(
		{"/app/card.mod": CARD, "/app/card.html": "<h1>{{ title }}</h1>"},
		declarations=True,
		live_reload=True,
	)
	assert result.errors == ()
	assert [d.code for d in result.warnings] == ["W-ANN-BINDING"]
	assert result.dependencies == ("/app/card.html",)
	assert "template='<h1>{{ title }}</h1>'" in result.content
	source_map = json.loads(result.sourcemap)
	assert source_map["sources"] == ["/app/card.mod"]
	assert source_map["sourcesContent"] == [CARD]
	assert "def size(self) -> int:\n        ..." in result.declarations
	assert "apply_hot_patch('/app/card.mod@Card'" in result.hmr_update_code
	assert result.hmr_eligible is None
	assert notifier.get("/app/card.mod") == "Card"


@pytest.mark.asyncio
async def test_live_reload_off_produces_no_patch_and_records_nothing() -> None:
	result, notifier = await _emit(
		{"/app/card.mod": CARD, "/app/card.html": "<h1>{{ title }}</h1>"},
		source_map=False,
	)
	assert result.hmr_update_code is None
	assert result.sourcemap is None
	assert result.declarations is None
	assert notifier.get("/app/card.mod") is None


@pytest.mark.asyncio
async def test_errors_come_back_as_diagnostics() -> None:
	result, _ = await _emit({"/app/card.mod": CARD})
	assert [d.code for d in result.errors] == ["E-RESOURCE"]
	assert result.content is not None


@pytest.mark.asyncio
async def test_syntax_error_module_has_no_content() -> None:
	result, _ = await _emit({"/app/card.mod": "def (:\n"})
	assert [d.code for d in result.errors] == ["E-SYNTAX"]
	assert result.content is None


@pytest.mark.asyncio
async def test_unreadable_root_fails_the_rebuild() -> None:
	host = MemoryHost({"/app/a.mod": "x = 1\n"})
	engine = BuildEngine(["/app/a.mod"], options(), host, watch_mode=True)
	await engine.rebuild()
	host.delete("/app/a.mod")
	engine.invalidate(["/app/a.mod"])
	with pytest.raises(HostError) as info:
		await engine.rebuild()
	assert info.value.path == "/app/a.mod"


@pytest.mark.asyncio
async def test_user_transformer_errors_are_not_swallowed() -> None:
	session = CompilationSession.initialize(["/app/a.mod"], options(), MemoryHost({"/app/a.mod": "x = 1\n"}))
	await session.analyze()
	emitter = session.get_emitter(TransformerPipeline.of(after=[lambda tree, sf: None]))
	with pytest.raises(TypeError, match="ast.Module"):
		await emitter.emit("/app/a.mod")


@pytest.mark.asyncio
async def test_emit_clears_pending_state_in_watch_mode() -> None:
	base = MemoryHost({"/app/a.mod": "from . import b\n", "/app/b.mod": "X = 1\n"})
	host = CachingHost(base, SourceFileCache())
	seen = []
	session = CompilationSession.initialize(["/app/a.mod"], options(), host, watch_mode=True)
	snapshot = await session.analyze()
	assert snapshot.builder.get_pending_emit() == ("/app/a.mod", "/app/b.mod")
	emitter = session.get_emitter(on_after_emit=lambda sf: seen.append(sf.file_id))
	await emitter("/app/b.mod")
	assert snapshot.builder.get_pending_emit() == ("/app/a.mod",)
	assert seen == ["/app/b.mod"]
