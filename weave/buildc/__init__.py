# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
weave annotation compiler (`buildc`).

The CLI entrypoint is `weave.buildc.buildc:main`; dev servers drive
`BuildEngine` directly.
"""

from .core.diagnostics import Diagnostic
from .core.errors import BuildError, ConfigurationError, HostError
from .emitter import EmitResult, FileEmitter
from .engine import BuildEngine, ResourceUpdate
from .host import CachingHost, FileSystemHost, Host, ResourceHost
from .notifier import HotUpdate, HotUpdateNotifier
from .options import CompilerOptions, read_configuration
from .session import CompilationSession, ProgramSnapshot
from .source_cache import SourceFileCache
from .transformers import TransformerPipeline, merge_transformers

__all__ = [
	"BuildEngine",
	"BuildError",
	"CachingHost",
	"CompilationSession",
	"CompilerOptions",
	"ConfigurationError",
	"Diagnostic",
	"EmitResult",
	"FileEmitter",
	"FileSystemHost",
	"Host",
	"HostError",
	"HotUpdate",
	"HotUpdateNotifier",
	"ProgramSnapshot",
	"ResourceHost",
	"ResourceUpdate",
	"SourceFileCache",
	"TransformerPipeline",
	"merge_transformers",
	"read_configuration",
]
