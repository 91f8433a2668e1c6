# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parsers for the small languages embedded in class annotations.

Selectors and host-binding keys share `grammar.lark`; templates use
`template.lark`. Both grammars are loaded from files beside this module.
Parse failures raise `AnnotationSyntaxError`, which callers convert into
diagnostics.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

_GRAMMAR_SRC = Path(__file__).with_name("grammar.lark").read_text()
_TEMPLATE_SRC = Path(__file__).with_name("template.lark").read_text()

_ANNOTATION_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="contextual",
	start=["selector_list", "host_key"],
	propagate_positions=True,
)

_TEMPLATE_PARSER = Lark(
	_TEMPLATE_SRC,
	parser="lalr",
	lexer="contextual",
	start="start",
	propagate_positions=True,
)


class AnnotationSyntaxError(ValueError):
	"""
	Error raised while parsing a selector, host key or template.

	Carries a best-effort 1-based line/column inside the parsed fragment.
	"""

	def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
		super().__init__(message)
		self.line = line
		self.column = column


@dataclass(frozen=True)
class CssSelector:
	element: str | None
	attrs: tuple[tuple[str, str], ...] = ()
	classes: tuple[str, ...] = ()

	def to_literal(self) -> tuple:
		return (self.element or "", self.attrs, self.classes)


@dataclass(frozen=True)
class HostKey:
	# "listener", "property" or "attribute"
	kind: str
	name: str


@dataclass(frozen=True)
class TemplateText:
	text: str


@dataclass(frozen=True)
class TemplateInterpolation:
	path: tuple[str, ...]
	call: bool
	line: int
	column: int

	@property
	def root(self) -> str:
		return self.path[0]


TemplatePart = Union[TemplateText, TemplateInterpolation]


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value


def _syntax_error(kind: str, text: str, err: UnexpectedInput) -> AnnotationSyntaxError:
	line = getattr(err, "line", None)
	column = getattr(err, "column", None)
	if line is not None and line < 0:
		line = column = None
	return AnnotationSyntaxError(f"invalid {kind} '{text}'", line=line, column=column)


def parse_selector(text: str) -> tuple[CssSelector, ...]:
	"""Parse a comma-separated selector list (`tag`, `[attr]`, `[attr=v]`, `.cls`)."""
	if not text.strip():
		raise AnnotationSyntaxError("selector must not be empty")
	try:
		tree = _ANNOTATION_PARSER.parse(text, start="selector_list")
	except UnexpectedInput as err:
		raise _syntax_error("selector", text, err) from err
	selectors: list[CssSelector] = []
	for compound in tree.children:
		element: str | None = None
		attrs: list[tuple[str, str]] = []
		classes: list[str] = []
		for part in compound.children:
			kind = _name(part)
			if kind == "element":
				element = str(part.children[0])
			elif kind == "cls":
				classes.append(str(part.children[0]))
			elif kind == "attr":
				value = ""
				if len(part.children) > 1:
					tok = part.children[1].children[0]
					value = ast.literal_eval(str(tok)) if tok.type == "ESCAPED_STRING" else str(tok)
				attrs.append((str(part.children[0]), value))
		selectors.append(CssSelector(element, tuple(attrs), tuple(classes)))
	return tuple(selectors)


def parse_host_key(text: str) -> HostKey:
	"""Parse a host mapping key: `(event)`, `[property]` or `attribute`."""
	try:
		tree = _ANNOTATION_PARSER.parse(text, start="host_key")
	except UnexpectedInput as err:
		raise _syntax_error("host binding", text, err) from err
	kind = _name(tree)
	if kind == "host_key" and tree.children and isinstance(tree.children[0], Tree):
		tree = tree.children[0]
		kind = _name(tree)
	return HostKey(kind=kind, name=".".join(str(tok) for tok in tree.children if isinstance(tok, Token)))


def parse_template(text: str) -> tuple[TemplatePart, ...]:
	"""Split template text into literal runs and interpolations."""
	if not text:
		return ()
	try:
		tree = _TEMPLATE_PARSER.parse(text)
	except UnexpectedInput as err:
		raise _syntax_error("template", text.splitlines()[0] if text.strip() else text, err) from err
	parts: list[TemplatePart] = []
	for child in tree.children:
		if isinstance(child, Token):
			parts.append(TemplateText(str(child)))
			continue
		path_node = next(c for c in child.children if _name(c) == "path")
		first = path_node.children[0]
		parts.append(
			TemplateInterpolation(
				path=tuple(str(tok) for tok in path_node.children),
				call=any(_name(c) == "call" for c in child.children),
				line=first.line,
				column=first.column,
			)
		)
	return tuple(parts)


__all__ = [
	"AnnotationSyntaxError",
	"CssSelector",
	"HostKey",
	"TemplateText",
	"TemplateInterpolation",
	"TemplatePart",
	"parse_selector",
	"parse_host_key",
	"parse_template",
]
