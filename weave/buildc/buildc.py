# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import posixpath
import sys
from pathlib import Path
from typing import List

from weave.buildc.builder import output_path
from weave.buildc.core.diagnostics import Diagnostic, has_errors
from weave.buildc.core.errors import ConfigurationError, HostError
from weave.buildc.engine import BuildEngine
from weave.buildc.host import FileSystemHost
from weave.buildc.options import CompilerOptions, normalize_path, read_configuration

logger = logging.getLogger(__name__)


def _fatal(message: str, phase: str, file: str | None, as_json: bool) -> int:
	if as_json:
		print(
			json.dumps(
				{
					"exit_code": 2,
					"diagnostics": [
						{
							"phase": phase,
							"code": None,
							"message": message,
							"severity": "error",
							"file": file,
							"line": None,
							"column": None,
							"notes": [],
						}
					],
				}
			)
		)
	else:
		print(f"{file or '<config>'}:?:?: error: {message}", file=sys.stderr)
	return 2


def _load_project(args: argparse.Namespace) -> tuple[tuple[str, ...], CompilerOptions]:
	if args.config is not None:
		project = read_configuration(args.config)
		roots = project.root_names + tuple(normalize_path(Path(r).resolve()) for r in args.roots)
		options = project.options
	else:
		roots = tuple(normalize_path(Path(r).resolve()) for r in args.roots)
		# Without a project file the root modules' common directory is the project root.
		root_dir = posixpath.commonpath([posixpath.dirname(r) for r in roots]) if roots else normalize_path(Path.cwd())
		options = CompilerOptions(root_dir=root_dir)
	overrides: dict = {}
	if args.out_dir is not None:
		overrides["out_dir"] = normalize_path(Path(args.out_dir).resolve())
	elif options.out_dir is None:
		# Outputs share the `.py` suffix with sources; never write them in place.
		overrides["out_dir"] = normalize_path(Path(options.root_dir) / "build")
	elif not options.out_dir.startswith("/"):
		overrides["out_dir"] = normalize_path(Path(options.root_dir) / options.out_dir)
	if args.live_reload:
		overrides["live_reload"] = True
	if args.declarations:
		overrides["declarations"] = True
	if args.no_source_map:
		overrides["source_map"] = False
	options = dataclasses.replace(options, **overrides)
	options.validate()
	return roots, options


async def build(roots: tuple[str, ...], options: CompilerOptions) -> List[Diagnostic]:
	"""Build every module reachable from `roots`; returns all diagnostics."""
	engine = BuildEngine(roots, options, FileSystemHost())
	snapshot = await engine.rebuild()
	program = snapshot.program
	diagnostics: List[Diagnostic] = []
	for source_file in program.get_source_files():
		result = await engine.emit(source_file.file_id)
		if result is None:
			continue
		diagnostics.extend(result.errors)
		diagnostics.extend(result.warnings)
		if result.errors:
			continue
		outputs = [(".py", result.content), (".py.map", result.sourcemap), (".pyi", result.declarations)]
		for suffix, data in outputs:
			if data is None:
				continue
			target = Path(output_path(source_file.file_id, program, suffix))
			target.parent.mkdir(parents=True, exist_ok=True)
			target.write_text(data, encoding="utf-8")
			logger.debug("wrote %s", target)
	return diagnostics


def main(argv: list[str] | None = None) -> int:
	"""
	One-shot build: compile the root modules and everything they import.

	With --json, prints `{"exit_code", "diagnostics"}` on stdout; otherwise
	diagnostics go to stderr as `file:line:col: severity: message`. Exit code is
	1 when any module has error diagnostics, 2 on configuration or host errors.
	"""
	parser = argparse.ArgumentParser(description="weave annotation compiler")
	parser.add_argument("roots", nargs="*", help="Root module file(s)")
	parser.add_argument("-c", "--config", type=Path, help="JSON project file (files/include/compilerOptions)")
	parser.add_argument("-o", "--out-dir", help="Output directory (default: <root_dir>/build)")
	parser.add_argument("--live-reload", action="store_true", help="Also produce hot-update modules")
	parser.add_argument("--declarations", action="store_true", help="Write .pyi declaration stubs")
	parser.add_argument("--no-source-map", action="store_true", help="Do not write .py.map files")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
	args = parser.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)

	try:
		roots, options = _load_project(args)
		diagnostics = asyncio.run(build(roots, options))
	except ConfigurationError as err:
		return _fatal(str(err), "config", str(args.config) if args.config else None, args.json)
	except HostError as err:
		return _fatal(str(err), "host", err.path, args.json)

	exit_code = 1 if has_errors(diagnostics) else 0
	if args.json:
		print(json.dumps({"exit_code": exit_code, "diagnostics": [d.to_json() for d in diagnostics]}))
	else:
		for diag in diagnostics:
			print(diag.render(), file=sys.stderr)
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
