# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime support for compiled modules.

Source modules import the annotation decorators from here; the compiler strips
them and emits `define_component(...)` registrations instead, so at runtime
the decorators are only reached by uncompiled code and are identity wrappers.

Hot updates are patch modules produced by the build engine. `load_hot_update`
executes one in a copy of the live module's globals; the patch calls
`apply_hot_patch`, which moves the fresh method code onto the live class so
existing instances pick it up without losing state.
"""

from __future__ import annotations

import logging
import sys
import types
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def _annotation(*args: Any, **kwargs: Any) -> Any:
	if len(args) == 1 and isinstance(args[0], type) and not kwargs:
		return args[0]
	return lambda cls: cls


component = _annotation
directive = _annotation
injectable = _annotation


def host_listener(_event: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
	return lambda fn: fn


@dataclass
class Definition:
	cls: type
	id: str
	file: str
	kind: str
	selectors: tuple = ()
	inputs: tuple = ()
	outputs: tuple = ()
	host: dict | None = None
	template: str | None = None
	styles: tuple = ()
	provided_in: str | None = None
	render: Optional[Callable[[Any], str]] = None
	module_globals: Optional[Dict[str, Any]] = None
	# Bumped by every hot patch.
	revision: int = 0


_definitions: Dict[str, Definition] = {}
_module_globals: Dict[str, Dict[str, Any]] = {}


def define_component(
	cls: type,
	*,
	id: str,
	file: str,
	kind: str,
	selectors: tuple = (),
	inputs: tuple = (),
	outputs: tuple = (),
	host: dict | None = None,
	template: str | None = None,
	styles: tuple = (),
	provided_in: str | None = None,
	render: Optional[Callable[[Any], str]] = None,
	module_globals: Optional[Dict[str, Any]] = None,
) -> type:
	definition = Definition(
		cls=cls,
		id=id,
		file=file,
		kind=kind,
		selectors=tuple(selectors),
		inputs=tuple(inputs),
		outputs=tuple(outputs),
		host=dict(host or {}),
		template=template,
		styles=tuple(styles),
		provided_in=provided_in,
		render=render,
		module_globals=module_globals,
	)
	_definitions[id] = definition
	if module_globals is not None:
		_module_globals[file] = module_globals
	cls.__weave_def__ = definition  # type: ignore[attr-defined]
	return cls


def get_definition(target: str | type) -> Definition | None:
	if isinstance(target, str):
		return _definitions.get(target)
	return getattr(target, "__weave_def__", None)


def render(instance: Any) -> str:
	"""Render a component instance with its current template."""
	definition = get_definition(type(instance))
	if definition is None or definition.render is None:
		raise TypeError(f"{type(instance).__name__} is not a component")
	return definition.render(instance)


def _rebind(fn: types.FunctionType, live_cls: type, live_globals: Dict[str, Any]) -> types.FunctionType:
	closure = fn.__closure__
	if closure is not None:
		closure = tuple(
			types.CellType(live_cls) if name == "__class__" else cell
			for name, cell in zip(fn.__code__.co_freevars, closure)
		)
	new = types.FunctionType(fn.__code__, live_globals, fn.__name__, fn.__defaults__, closure)
	new.__kwdefaults__ = fn.__kwdefaults__
	new.__qualname__ = fn.__qualname__
	new.__doc__ = fn.__doc__
	new.__annotations__ = dict(fn.__annotations__)
	new.__dict__.update(fn.__dict__)
	return new


def _rebind_member(value: Any, live_cls: type, live_globals: Dict[str, Any]) -> Any:
	if isinstance(value, types.FunctionType):
		return _rebind(value, live_cls, live_globals)
	if isinstance(value, staticmethod):
		return staticmethod(_rebind_member(value.__func__, live_cls, live_globals))
	if isinstance(value, classmethod):
		return classmethod(_rebind_member(value.__func__, live_cls, live_globals))
	if isinstance(value, property):
		return property(
			*(
				_rebind_member(f, live_cls, live_globals) if f is not None else None
				for f in (value.fget, value.fset, value.fdel)
			),
			value.__doc__,
		)
	return None


def apply_hot_patch(
	class_id: str,
	patched_cls: type,
	*,
	render: Optional[Callable[[Any], str]] = None,
	template: str | None = None,
	styles: tuple = (),
) -> Definition:
	"""Move method code from `patched_cls` onto the live class registered as `class_id`."""
	definition = _definitions.get(class_id)
	if definition is None:
		raise LookupError(f"no live class registered as '{class_id}'")
	live = definition.cls
	live_globals = definition.module_globals
	if live_globals is None:
		live_globals = vars(sys.modules[live.__module__])
	for name, value in vars(patched_cls).items():
		rebound = _rebind_member(value, live, live_globals)
		if rebound is not None:
			setattr(live, name, rebound)
	if isinstance(render, types.FunctionType):
		definition.render = _rebind(render, live, live_globals)
	elif render is not None:
		definition.render = render
	definition.template = template
	definition.styles = tuple(styles)
	definition.revision += 1
	logger.debug("patched %s (revision %d)", class_id, definition.revision)
	return definition


def load_hot_update(code: str, file_id: str) -> Dict[str, Any]:
	"""Execute a hot-update module against the live globals of `file_id`."""
	live_globals = _module_globals.get(file_id)
	if live_globals is None:
		raise LookupError(f"module '{file_id}' has no registered classes")
	namespace = dict(live_globals)
	exec(compile(code, f"<hot update {file_id}>", "exec"), namespace)
	return namespace


def reset_registry() -> None:
	_definitions.clear()
	_module_globals.clear()


__all__ = [
	"Definition",
	"apply_hot_patch",
	"component",
	"define_component",
	"directive",
	"get_definition",
	"host_listener",
	"injectable",
	"load_hot_update",
	"render",
	"reset_registry",
]
