# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Ownership-script parser: text → (TypeTable, Graph).

Lowering rules:
  let x: T = v        Declare(x, T)
  let x: T            Declare(x, T, initialized=False)
  x = y               Assign(x, y)
  x = <literal>/new   Assign(x, None)
  x = clone y         Clone(y, x)
  clone y             Clone(y, None)        (temporary)
  read x              Read(x)
  ref r = &x          Borrow(r, x, SHARED)
  ref r = &mut x      Borrow(r, x, EXCLUSIVE)
  release r           ReleaseBorrow(r)
  { ... }             ScopeEnter ... ScopeExit
  if {A} else {B}     Branch([A, B])        (no else: Branch([A, <empty>]))
  loop {A}            Loop(A)

Struct declarations may appear anywhere at top level; a struct may only use
types that are known at its definition point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from borrowck import graph as G
from borrowck.core.span import Span
from borrowck.core.types_core import TypeId, TypeTable

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=True,
)

_SCALARS = ("Int", "Uint", "Float", "Bool", "Char")
_GENERIC_OWNED = ("Vec", "Box")


class ScriptError(ValueError):
	"""Semantic error in an ownership script (unknown type, bad struct, ...)."""

	def __init__(self, message: str, span: Span | None = None) -> None:
		self.span = span or Span()
		super().__init__(f"{self.span.render()}: {message}" if self.span.known else message)
		self.message = message


@dataclass
class Script:
	"""A parsed ownership script: its types and its verification graph."""

	graph: G.Graph
	types: TypeTable
	structs: List[str] = field(default_factory=list)


def parse_script(source: str, file: Optional[str] = None) -> Script:
	"""
	Parse an ownership script.

	Syntax errors propagate as lark `UnexpectedInput`; semantic errors raise
	ScriptError.
	"""
	tree = _PARSER.parse(source)
	return _ScriptBuilder(file).build(tree)


def parse_file(path: Path) -> Script:
	return parse_script(Path(path).read_text(encoding="utf-8"), file=str(path))


class _ScriptBuilder:
	def __init__(self, file: Optional[str]) -> None:
		self.file = file
		self.types = TypeTable()
		self.structs: List[str] = []
		for name in _SCALARS:
			self.types.new_scalar(name)
		self.types.ensure_string()
		self.types.ensure_unknown()

	def build(self, tree: Tree) -> Script:
		name = self.file or "<script>"
		nodes: List[G.GNode] = []
		for child in _trees(tree.children):
			if _name(child) == "struct_def":
				self._build_struct(child)
			else:
				nodes.extend(self._build_stmt(child))
		return Script(graph=G.Graph(nodes=nodes, name=name), types=self.types, structs=list(self.structs))

	def _build_struct(self, tree: Tree) -> None:
		name_tok = tree.children[0]
		fields = []
		for fld in _trees(tree.children[1:]):
			fname, ftype = fld.children
			fields.append((str(fname), self._build_type(ftype)))
		try:
			self.types.new_struct(str(name_tok), fields)
		except ValueError as err:
			raise ScriptError(str(err), self._span_tok(name_tok)) from err
		self.structs.append(str(name_tok))

	def _build_block_body(self, tree: Tree) -> G.Graph:
		nodes: List[G.GNode] = []
		for child in _trees(tree.children):
			nodes.extend(self._build_stmt(child))
		return G.Graph(nodes=nodes, name="<block>")

	def _build_stmt(self, tree: Tree) -> List[G.GNode]:
		kind = _name(tree)
		loc = self._span(tree)
		kids = tree.children
		if kind == "let_stmt":
			name_tok, type_node, value = kids
			return [G.Declare(str(name_tok), self._build_type(type_node), initialized=value is not None, loc=loc)]
		if kind == "assign_stmt":
			dest, rhs = kids
			rhs_kind = _name(rhs)
			if rhs_kind == "rhs_name":
				return [G.Assign(str(dest), str(rhs.children[0]), loc=loc)]
			if rhs_kind == "rhs_clone":
				return [G.Clone(str(rhs.children[0]), str(dest), loc=loc)]
			return [G.Assign(str(dest), None, loc=loc)]
		if kind == "read_stmt":
			return [G.Read(str(kids[0]), loc=loc)]
		if kind == "clone_stmt":
			return [G.Clone(str(kids[0]), None, loc=loc)]
		if kind == "ref_stmt":
			ref_tok, mut_tok, target = kids
			borrow_kind = G.BorrowKind.EXCLUSIVE if mut_tok is not None else G.BorrowKind.SHARED
			return [G.Borrow(str(ref_tok), str(target), borrow_kind, loc=loc)]
		if kind == "release_stmt":
			return [G.ReleaseBorrow(str(kids[0]), loc=loc)]
		if kind == "block":
			body = self._build_block_body(tree)
			return [G.ScopeEnter(loc=loc), *body.nodes, G.ScopeExit(loc=self._end_span(tree))]
		if kind == "if_stmt":
			arms = [self._build_block_body(b) for b in _trees(kids)]
			if len(arms) == 1:
				arms.append(G.Graph(nodes=[], name="<else>"))
			return [G.Branch(arms=arms, loc=loc)]
		if kind == "loop_stmt":
			return [G.Loop(body=self._build_block_body(kids[0]), loc=loc)]
		raise ScriptError(f"unsupported statement '{kind}'", loc)

	def _build_type(self, node: Tree | Token) -> TypeId:
		kind = _name(node)
		if kind == "named_type":
			tok = node.children[0]
			ty = self.types.lookup(str(tok))
			if ty is None or str(tok) in _GENERIC_OWNED:
				raise ScriptError(f"unknown type '{tok}'", self._span_tok(tok))
			return ty
		if kind == "generic_type":
			tok = node.children[0]
			params = [self._build_type(p) for p in _trees(node.children[1:])]
			if str(tok) not in _GENERIC_OWNED:
				raise ScriptError(f"unknown generic type '{tok}'", self._span_tok(tok))
			if len(params) != 1:
				raise ScriptError(f"'{tok}' takes exactly one type argument", self._span_tok(tok))
			return self.types.new_owned(str(tok), params)
		if kind == "tuple_type":
			return self.types.new_tuple([self._build_type(p) for p in _trees(node.children)])
		if kind == "array_type":
			elem, length = node.children
			return self.types.new_array(self._build_type(elem), int(length))
		if kind == "ref_type":
			mut_tok, inner = node.children
			return self.types.new_ref(self._build_type(inner), is_mut=mut_tok is not None)
		raise ScriptError(f"unsupported type form '{kind}'", self._span(node) if isinstance(node, Tree) else None)

	def _span(self, tree: Tree) -> Span:
		meta = tree.meta
		return Span(file=self.file, line=getattr(meta, "line", None), column=getattr(meta, "column", None))

	def _end_span(self, tree: Tree) -> Span:
		meta = tree.meta
		return Span(file=self.file, line=getattr(meta, "end_line", None), column=getattr(meta, "end_column", None))

	def _span_tok(self, tok: Token) -> Span:
		return Span(file=self.file, line=getattr(tok, "line", None), column=getattr(tok, "column", None))


def _trees(children: list) -> List[Tree]:
	return [c for c in children if isinstance(c, Tree)]


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["Script", "ScriptError", "parse_script", "parse_file"]
