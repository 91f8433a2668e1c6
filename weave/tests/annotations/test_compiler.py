# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from weave.buildc.annotations.compiler import AnnotationCompiler
from weave.buildc.host import CachingHost
from weave.buildc.program import Program
from weave.buildc.source_cache import SourceFileCache
from weave.tests.support.memory_host import MemoryHost, options

CARD = (
	"from weave.runtime import component\n"
	"\n"
	"@component(selector='app-card', template_url='./card.html', style_urls=['./card.css'])\n"
	"class Card:\n"
	"    title = 'x'\n"
)


async def _analyze(host, roots=("/app/card.mod",), old=None, **opts) -> AnnotationCompiler:
	opt = options(**opts)
	program = Program(roots, opt, host, old.program if old else None)
	compiler = AnnotationCompiler(program, host, opt, old)
	await compiler.analyze_async()
	return compiler


@pytest.mark.asyncio
async def test_external_resources_are_read_and_tracked() -> None:
	host = MemoryHost(
		{"/app/card.mod": CARD, "/app/card.html": "<h1>{{ title }}</h1>", "/app/card.css": "h1{}"}
	)
	compiler = await _analyze(host)
	analysis = compiler.get_file_analysis("/app/card.mod")
	(card,) = analysis.classes
	assert card.template_text == "<h1>{{ title }}</h1>"
	assert card.styles == ("h1{}",)
	assert compiler.get_resource_dependencies("/app/card.mod") == ("/app/card.html", "/app/card.css")
	assert compiler.files_reading_resource("/app/card.css") == ("/app/card.mod",)
	assert compiler.get_diagnostics_for_file(analysis.source_file) == []


@pytest.mark.asyncio
async def test_missing_resource_is_a_diagnostic() -> None:
	host = MemoryHost({"/app/card.mod": CARD, "/app/card.html": "<h1></h1>"})
	compiler = await _analyze(host)
	sf = compiler.program.get_source_file("/app/card.mod")
	(diag,) = compiler.get_diagnostics_for_file(sf)
	assert diag.code == "E-RESOURCE"
	assert "/app/card.css" in diag.message


@pytest.mark.asyncio
async def test_unknown_template_member_points_into_the_module() -> None:
	source = (
		"@component(\n"
		"    selector='x-a',\n"
		"    template='''<p>\n"
		"{{ missing }}</p>''',\n"
		")\n"
		"class A:\n"
		"    pass\n"
	)
	host = MemoryHost({"/app/a.mod": source})
	compiler = await _analyze(host, roots=("/app/a.mod",))
	(diag,) = compiler.get_diagnostics_for_file(compiler.program.get_source_file("/app/a.mod"))
	assert diag.code == "E-TEMPLATE-MEMBER"
	assert diag.is_error
	assert (diag.span.file, diag.span.line, diag.span.column) == ("/app/a.mod", 4, 4)

	lenient = await _analyze(host, roots=("/app/a.mod",), strict_templates=False)
	(diag,) = lenient.get_diagnostics_for_file(lenient.program.get_source_file("/app/a.mod"))
	assert diag.severity == "warning"


@pytest.mark.asyncio
async def test_template_syntax_error() -> None:
	host = MemoryHost({"/app/a.mod": "@component(selector='x-a', template='{{ }}')\nclass A:\n    pass\n"})
	compiler = await _analyze(host, roots=("/app/a.mod",))
	(diag,) = compiler.get_diagnostics_for_file(compiler.program.get_source_file("/app/a.mod"))
	assert diag.code == "E-TEMPLATE"
	assert compiler.get_file_analysis("/app/a.mod").classes[0].template == ()


@pytest.mark.asyncio
async def test_inherited_members_satisfy_template_and_inputs() -> None:
	host = MemoryHost(
		{
			"/app/base.mod": "class Base:\n    def __init__(self):\n        self.label = ''\n",
			"/app/a.mod": (
				"from .base import Base\n"
				"@component(selector='x-a', inputs=['label'], template='{{ label }}')\n"
				"class A(Base):\n"
				"    pass\n"
			),
		}
	)
	compiler = await _analyze(host, roots=("/app/a.mod",))
	assert compiler.get_diagnostics_for_file(compiler.program.get_source_file("/app/a.mod")) == []


@pytest.mark.asyncio
async def test_duplicate_component_selectors() -> None:
	host = MemoryHost(
		{
			"/app/a.mod": "from . import b\n@component(selector='x-a', template='')\nclass A:\n    pass\n",
			"/app/b.mod": "@component(selector='x-a', template='')\nclass B:\n    pass\n",
		}
	)
	compiler = await _analyze(host, roots=("/app/a.mod",))
	b = compiler.program.get_source_file("/app/b.mod")
	(diag,) = compiler.get_diagnostics_for_file(b)
	assert diag.code == "E-ANN-DUPLICATE"
	assert "'A'" in diag.message


@pytest.mark.asyncio
async def test_analysis_is_reused_for_unchanged_files() -> None:
	base = MemoryHost(
		{
			"/app/a.mod": "from .b import helper\n@component(selector='x-a', template='')\nclass A:\n    pass\n",
			"/app/b.mod": "def helper():\n    return 1\n",
			"/app/c.mod": "@directive(selector='[c]')\nclass C:\n    pass\n",
		}
	)
	cache = SourceFileCache()
	host = CachingHost(base, cache)
	roots = ("/app/a.mod", "/app/c.mod")
	first = await _analyze(host, roots=roots)
	base.write("/app/b.mod", "def helper():\n    return 2\n")
	cache.invalidate(["/app/b.mod"])
	second = await _analyze(host, roots=roots, old=first)
	assert second.reused_files == {"/app/c.mod"}
	assert second.get_file_analysis("/app/c.mod") is first.get_file_analysis("/app/c.mod")
	assert second.get_file_analysis("/app/a.mod") is not first.get_file_analysis("/app/a.mod")
