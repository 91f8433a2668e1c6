# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from weave.buildc.core.errors import HostError
from weave.buildc.host import CachingHost
from weave.buildc.program import Program
from weave.buildc.source_cache import SourceFileCache
from weave.tests.support.memory_host import MemoryHost, options


def _files() -> dict[str, str]:
	return {
		"/app/main.mod": "from .lib import helper\nimport json\n\nx = helper()\n",
		"/app/lib.mod": "from .deep import VALUE\n\ndef helper():\n    return VALUE\n",
		"/app/deep.mod": "VALUE = 1\n",
	}


def test_program_loads_transitive_imports() -> None:
	program = Program(("/app/main.mod",), options(), MemoryHost(_files()))
	assert {sf.file_id for sf in program.get_source_files()} == {"/app/main.mod", "/app/lib.mod", "/app/deep.mod"}
	assert program.dependencies("/app/main.mod") == ("/app/lib.mod",)
	assert program.transitive_dependencies("/app/main.mod") == ("/app/lib.mod", "/app/deep.mod")
	assert program.importers("/app/deep.mod") == ("/app/lib.mod",)
	assert program.transitive_importers(["/app/deep.mod"]) == {"/app/lib.mod", "/app/main.mod"}


def test_external_imports_are_not_errors() -> None:
	program = Program(("/app/main.mod",), options(), MemoryHost(_files()))
	main = program.get_source_file("/app/main.mod")
	assert program.check_imports(main) == []
	json_ref = next(ref for ref in program.get_imports("/app/main.mod") if ref.module == "json")
	assert json_ref.external


def test_unresolved_relative_import_and_missing_name() -> None:
	host = MemoryHost(
		{
			"/app/main.mod": "from .gone import x\nfrom .deep import NOPE\n",
			"/app/deep.mod": "VALUE = 1\n",
		}
	)
	program = Program(("/app/main.mod",), options(), host)
	diags = program.check_imports(program.get_source_file("/app/main.mod"))
	assert [d.code for d in diags] == ["E-IMPORT", "E-IMPORT-NAME"]
	assert all(d.phase == "resolve" and d.is_error for d in diags)
	assert "'.gone'" in diags[0].message
	assert diags[1].span.line == 2


def test_unreadable_root_raises_host_error() -> None:
	with pytest.raises(HostError) as info:
		Program(("/app/missing.mod",), options(), MemoryHost())
	assert info.value.path == "/app/missing.mod"


def test_unchanged_files_keep_previous_resolution() -> None:
	base = MemoryHost(_files())
	cache = SourceFileCache()
	host = CachingHost(base, cache)
	first = Program(("/app/main.mod",), options(), host)
	base.write("/app/deep.mod", "VALUE = 2\n")
	cache.invalidate(["/app/deep.mod"])
	second = Program(("/app/main.mod",), options(), host, first)
	assert second.reused_files == {"/app/main.mod", "/app/lib.mod"}
	assert second.get_source_file("/app/main.mod") is first.get_source_file("/app/main.mod")
	assert second.get_source_file("/app/deep.mod").text == "VALUE = 2\n"


def test_deleted_import_target_is_not_reused() -> None:
	base = MemoryHost(_files())
	cache = SourceFileCache()
	host = CachingHost(base, cache)
	first = Program(("/app/main.mod",), options(), host)
	base.delete("/app/deep.mod")
	cache.invalidate(["/app/deep.mod"])
	second = Program(("/app/main.mod",), options(), host, first)
	assert "/app/lib.mod" not in second.reused_files
	assert second.get_source_file("/app/deep.mod") is None
	diags = second.check_imports(second.get_source_file("/app/lib.mod"))
	assert [d.code for d in diags] == ["E-IMPORT"]


def test_external_import_is_resolved_again_once_the_module_exists() -> None:
	base = MemoryHost(_files())
	host = CachingHost(base, SourceFileCache())
	first = Program(("/app/main.mod",), options(), host)
	base.write("/app/json.mod", "def dumps(value):\n    return str(value)\n")
	second = Program(("/app/main.mod",), options(), host, first)
	assert "/app/main.mod" not in second.reused_files
	assert "/app/lib.mod" in second.reused_files
	assert second.get_source_file("/app/json.mod") is not None
	json_ref = next(ref for ref in second.get_imports("/app/main.mod") if ref.module == "json")
	assert json_ref.resolved == "/app/json.mod"


def test_new_submodule_replaces_package_member_import() -> None:
	base = MemoryHost(
		{
			"/app/pkg/__init__.mod": "",
			"/app/pkg/main.mod": "from . import helpers\n",
		}
	)
	host = CachingHost(base, SourceFileCache())
	first = Program(("/app/pkg/main.mod",), options(), host)
	assert first.dependencies("/app/pkg/main.mod") == ("/app/pkg/__init__.mod",)
	base.write("/app/pkg/helpers.mod", "VALUE = 1\n")
	second = Program(("/app/pkg/main.mod",), options(), host, first)
	assert second.dependencies("/app/pkg/main.mod") == ("/app/pkg/helpers.mod",)
	assert second.check_imports(second.get_source_file("/app/pkg/main.mod")) == []
