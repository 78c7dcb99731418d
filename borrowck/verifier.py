# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Verification pass: walk a structured graph and enforce ownership discipline.

Scope:
- Tracks per-binding ownership (owned / moved / uninitialized / borrowed) and
  flags use-after-move, conflicting borrows, duplicate bindings and uses of
  uninitialized or undeclared bindings.
- Copy-typed values are duplicated on assignment; Move-typed values transfer
  ownership.
- Borrows are scope-bound: released explicitly or at exit of the scope that
  created them.
- Branches are joined conservatively and loops iterated to a fixed point
  (reconcile.py).
- Scope exits release owned values in reverse declaration order; the
  resulting drop events go to the caller's hook once the pass completes.

User-facing problems accumulate as diagnostics. A graph that breaks the
engine's structural preconditions raises InternalInvariantViolation and the
pass produces no result at all: neither diagnostics nor drop events escape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from borrowck import graph as G
from borrowck.borrows import BorrowChecker
from borrowck.core.config import VerifierConfig
from borrowck.core.diagnostics import InternalInvariantViolation
from borrowck.core.types_core import TypeClassifier, TypeTable
from borrowck.drops import DropEvent, DropScheduler
from borrowck.ownership import OwnershipStore
from borrowck.reconcile import Reconciler
from borrowck.result import Accepted, Rejected, VerificationResult
from borrowck.scopes import ScopeTracker
from borrowck.state import AnalysisContext, FlowState

logger = logging.getLogger(__name__)

DropHook = Callable[[DropEvent], None]


@dataclass
class Engine:
	"""The components of one pass, wired to a shared AnalysisContext."""

	ctx: AnalysisContext
	borrows: BorrowChecker
	drops: DropScheduler
	scopes: ScopeTracker
	store: OwnershipStore
	reconciler: Reconciler

	@classmethod
	def build(cls, ctx: AnalysisContext) -> "Engine":
		borrows = BorrowChecker(ctx)
		drops = DropScheduler(ctx)
		scopes = ScopeTracker(ctx, borrows, drops)
		store = OwnershipStore(ctx, scopes, drops)
		return cls(ctx=ctx, borrows=borrows, drops=drops, scopes=scopes, store=store, reconciler=Reconciler(ctx))


class Verifier:
	"""
	Ownership/borrow verifier for graphs over one TypeTable.

	Inputs:
	- types: the TypeTable the graph's `Declare.ty` ids index into.
	- config: loop iteration bound and shared-borrow cap.
	- on_drop: external resource-release hook, called once per drop event in
	  schedule order after a pass completes.

	A Verifier keeps no state between `verify` calls.
	"""

	def __init__(
		self,
		types: TypeTable,
		config: Optional[VerifierConfig] = None,
		*,
		on_drop: Optional[DropHook] = None,
	) -> None:
		self.types = types
		self.config = config or VerifierConfig()
		self.on_drop = on_drop
		self.classifier = TypeClassifier(types)
		self._engine: Optional[Engine] = None

	def verify(self, graph: G.Graph) -> VerificationResult:
		"""Run one pass over `graph` and return its verdict."""
		ctx = AnalysisContext(types=self.types, classifier=self.classifier, config=self.config)
		self._engine = engine = Engine.build(ctx)
		try:
			state = FlowState()
			engine.scopes.enter(state, implicit=True)
			state = self._visit_graph(state, graph)
			engine.scopes.exit(state, implicit=True)
			if state.scopes:
				raise InternalInvariantViolation(f"{len(state.scopes)} scope(s) left open after '{graph.name}'")
		finally:
			self._engine = None

		drops = tuple(ctx.drops)
		diagnostics = tuple(ctx.reporter.diagnostics)
		logger.debug(
			"verified %s: %d diagnostic(s), %d drop(s)", graph.name, len(diagnostics), len(drops)
		)
		if self.on_drop is not None:
			for event in drops:
				self.on_drop(event)
		if diagnostics:
			return Rejected(unit=graph.name, drops=drops, errors=diagnostics)
		return Accepted(unit=graph.name, drops=drops)

	@property
	def engine(self) -> Engine:
		if self._engine is None:
			raise RuntimeError("no verification pass in progress")
		return self._engine

	def _visit_graph(self, state: FlowState, graph: G.Graph) -> FlowState:
		for node in graph.nodes:
			state = self._visit(state, node)
		return state

	def _run_scoped(self, state: FlowState, graph: G.Graph) -> FlowState:
		"""Run a branch arm or loop body inside its own implicit scope."""
		self.engine.scopes.enter(state, implicit=True)
		state = self._visit_graph(state, graph)
		self.engine.scopes.exit(state, implicit=True)
		return state

	def _visit(self, state: FlowState, node: G.GNode) -> FlowState:
		engine = self.engine
		if isinstance(node, G.Declare):
			engine.store.declare(state, node.name, node.ty, node.loc, initialized=node.initialized)
		elif isinstance(node, G.Assign):
			engine.store.assign(state, node.dest, node.src, node.loc)
		elif isinstance(node, G.Read):
			engine.store.read(state, node.name, node.loc)
		elif isinstance(node, G.Clone):
			engine.store.clone(state, node.src, node.dest, node.loc)
		elif isinstance(node, G.Borrow):
			engine.borrows.create_borrow(state, node.ref, node.name, node.kind, node.loc)
		elif isinstance(node, G.ReleaseBorrow):
			engine.borrows.release_borrow(state, node.ref, node.loc)
		elif isinstance(node, G.ScopeEnter):
			engine.scopes.enter(state, node.loc)
		elif isinstance(node, G.ScopeExit):
			engine.scopes.exit(state, node.loc)
		elif isinstance(node, G.Branch):
			state = engine.reconciler.run_branch(state, node, self._run_scoped)
		elif isinstance(node, G.Loop):
			state = engine.reconciler.run_loop(state, node, self._run_scoped)
		else:
			raise InternalInvariantViolation(f"unsupported graph node {type(node).__name__}", getattr(node, "loc", None))
		return state


def verify(
	graph: G.Graph,
	types: TypeTable,
	*,
	config: Optional[VerifierConfig] = None,
	on_drop: Optional[DropHook] = None,
) -> VerificationResult:
	"""One-shot convenience wrapper around `Verifier(...).verify(graph)`."""
	return Verifier(types, config, on_drop=on_drop).verify(graph)


__all__ = ["Engine", "Verifier", "DropHook", "verify"]
