# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
weave package.

  buildc:   annotation compiler and incremental build engine
  runtime:  component registry and hot-patch support for compiled modules
"""
