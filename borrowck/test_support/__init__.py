# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Shared helpers for tests that drive the verifier or its components.

`Harness` wires the components to a fresh context and opens a root scope, so
component tests can call `store.assign(...)` or `borrows.create_borrow(...)`
directly and then inspect the flow state, which the end-to-end `verify`
entry point never exposes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from borrowck import graph as G
from borrowck.core.config import VerifierConfig
from borrowck.core.diagnostics import Diagnostic, DiagnosticKind
from borrowck.core.types_core import TypeClassifier, TypeId, TypeTable
from borrowck.drops import DropEvent
from borrowck.state import AnalysisContext, Binding, FlowState, OwnershipState
from borrowck.verifier import Engine


@dataclass
class Harness:
	types: TypeTable = field(default_factory=TypeTable)
	config: VerifierConfig = field(default_factory=VerifierConfig)

	def __post_init__(self) -> None:
		self.ctx = AnalysisContext(types=self.types, classifier=TypeClassifier(self.types), config=self.config)
		self.engine = Engine.build(self.ctx)
		self.state = FlowState()
		self.engine.scopes.enter(self.state, implicit=True)

	@property
	def store(self):
		return self.engine.store

	@property
	def borrows(self):
		return self.engine.borrows

	@property
	def scopes(self):
		return self.engine.scopes

	def binding(self, name: str) -> Binding:
		found = self.state.lookup(name)
		assert found is not None, f"no visible binding '{name}'"
		return found

	def state_of(self, name: str) -> OwnershipState:
		return self.binding(name).state

	def declare(self, name: str, ty: TypeId, *, initialized: bool = True) -> Optional[Binding]:
		return self.store.declare(self.state, name, ty, initialized=initialized)

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return self.ctx.reporter.diagnostics

	def kinds(self) -> List[DiagnosticKind]:
		return [d.kind for d in self.diagnostics]

	@property
	def drops(self) -> List[DropEvent]:
		return list(self.ctx.drops)


def graph(*nodes: G.GNode, name: str = "<test>") -> G.Graph:
	"""Build a Graph from positional nodes."""
	return G.Graph(nodes=list(nodes), name=name)


def block(*nodes: G.GNode) -> G.Graph:
	"""Subgraph for a branch arm or loop body."""
	return G.Graph(nodes=list(nodes), name="<block>")


__all__ = ["Harness", "graph", "block"]
