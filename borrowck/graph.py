# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Verification graph: the input representation consumed by the verifier.

Pipeline placement:
  front-end (script parser, REPL, linter, ...) → Graph (this file) → Verifier

The graph is *structured*: control flow is expressed by nesting (`Branch`
arms, `Loop` bodies) rather than by explicit edges, so every join point is
known statically. That keeps the reconciler a simple recursive walk instead of
a worklist over basic blocks.

Guiding rules:
- Nodes are purely structural; names are resolved by the verifier, not here.
- Bindings are referred to by name; types by TypeId in the unit's TypeTable.
- Borrows are named by a front-end-chosen handle (`ref`) so a later
  `ReleaseBorrow` can refer back to them.
- Every node carries a best-effort `loc`; `Span()` means "unknown".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional

from borrowck.core.span import Span
from borrowck.core.types_core import TypeId


class BorrowKind(Enum):
	"""Kinds of borrows."""

	SHARED = auto()
	EXCLUSIVE = auto()


class GNode:
	"""Base class for all graph nodes."""

	loc: Span = Span()


@dataclass
class Declare(GNode):
	"""
	Introduce a binding named `name` of type `ty` in the current scope.

	`initialized=False` models `let x: T;` (storage reserved, no value yet).
	"""

	name: str
	ty: TypeId
	initialized: bool = True
	loc: Span = field(default_factory=Span)


@dataclass
class Assign(GNode):
	"""
	`dest = src`.

	A `src` of None assigns a fresh value (literal / constructor result) and
	re-initializes `dest`. A `dest` that is not visible is declared implicitly
	in the current scope.
	"""

	dest: str
	src: Optional[str] = None
	loc: Span = field(default_factory=Span)


@dataclass
class Read(GNode):
	"""Use of a binding's value without taking ownership."""

	name: str
	loc: Span = field(default_factory=Span)


@dataclass
class Clone(GNode):
	"""Explicit deep duplicate of `src`; a None `dest` is a temporary clone."""

	src: str
	dest: Optional[str] = None
	loc: Span = field(default_factory=Span)


@dataclass
class Borrow(GNode):
	"""Create a borrow handle `ref` to binding `name`."""

	ref: str
	name: str
	kind: BorrowKind = BorrowKind.SHARED
	loc: Span = field(default_factory=Span)


@dataclass
class ReleaseBorrow(GNode):
	"""Explicitly end the borrow named by `ref` before its scope exits."""

	ref: str
	loc: Span = field(default_factory=Span)


@dataclass
class ScopeEnter(GNode):
	loc: Span = field(default_factory=Span)


@dataclass
class ScopeExit(GNode):
	loc: Span = field(default_factory=Span)


@dataclass
class Graph:
	"""An ordered sequence of nodes: a verification unit or a nested subgraph."""

	nodes: List[GNode] = field(default_factory=list)
	name: str = "<graph>"

	def __iter__(self) -> Iterator[GNode]:
		return iter(self.nodes)

	def __len__(self) -> int:
		return len(self.nodes)


@dataclass
class Branch(GNode):
	"""
	Choice between `arms`; exactly one arm runs.

	Each arm is verified from the same pre-branch state and runs in its own
	scope. An `if` without `else` is a Branch with an empty second arm.
	"""

	arms: List[Graph] = field(default_factory=list)
	loc: Span = field(default_factory=Span)


@dataclass
class Loop(GNode):
	"""`body` runs zero or more times; it runs in its own scope per iteration."""

	body: Graph = field(default_factory=Graph)
	loc: Span = field(default_factory=Span)


def walk(graph: Graph) -> Iterator[GNode]:
	"""Pre-order iteration over every node, including nested arms and bodies."""
	for node in graph.nodes:
		yield node
		if isinstance(node, Branch):
			for arm in node.arms:
				yield from walk(arm)
		elif isinstance(node, Loop):
			yield from walk(node.body)


__all__ = [
	"BorrowKind",
	"GNode",
	"Declare",
	"Assign",
	"Read",
	"Clone",
	"Borrow",
	"ReleaseBorrow",
	"ScopeEnter",
	"ScopeExit",
	"Graph",
	"Branch",
	"Loop",
	"walk",
]
