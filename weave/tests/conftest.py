# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from weave import runtime


@pytest.fixture(autouse=True)
def _fresh_runtime_registry():
	"""Compiled modules executed by one test must not leak into the next."""
	runtime.reset_registry()
	yield
	runtime.reset_registry()
