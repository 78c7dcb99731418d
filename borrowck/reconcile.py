# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Control-flow reconciler: joins at branch ends and loop fixed points.

Branches:
  Every arm starts from its own copy of the pre-branch state. At the join the
  per-binding states are combined with `merge_ownership_state` (least
  permissive wins): a value moved on any arm is moved after the join, even
  though the other arms left it usable, because nothing tells us statically
  which arm ran.

Loops:
  E0 is the state before the loop; E(k+1) = join(E(k), body(E(k))). The
  sequence only ever loses permissions (MOVED_OUT and UNINIT absorb), so it
  reaches a fixed point; `max_loop_iterations` bounds the search anyway.
  Iterations before the fixed point run muted. The body is then verified
  from the fixed point, which produces the drop events, and from the real
  entry state; diagnostics of both passes are reported, without duplicates.
  The state after the loop is the fixed point itself (the body may run zero
  times).

Structural agreement:
  At every join each incoming path must have the scope stack and live binding
  set of the state before the branch or loop, and all paths must agree on
  the active borrow table. Borrows created inside an arm or body end with its
  implicit scope; an outer borrow may be released inside the arms only when
  every path releases it, since scope-bound borrows cannot express a borrow
  that is live on some paths only. A loop body counts as one path and the
  zero-iteration exit as another.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from borrowck.core.diagnostics import Diagnostic, DiagnosticKind, InternalInvariantViolation
from borrowck.core.span import Span
from borrowck.graph import Branch, Graph, Loop
from borrowck.state import AnalysisContext, Binding, FlowState, StateKind, merge_ownership_state

logger = logging.getLogger(__name__)

RunSubgraph = Callable[[FlowState, Graph], FlowState]


class Reconciler:
	def __init__(self, ctx: AnalysisContext) -> None:
		self.ctx = ctx

	def run_branch(self, state: FlowState, node: Branch, run_arm: RunSubgraph) -> FlowState:
		"""Verify each arm from a snapshot of `state` and join the results."""
		if not node.arms:
			return state
		outs: List[FlowState] = []
		for arm in node.arms:
			outs.append(run_arm(state.copy(), arm))
		return self.join(state, outs, node.loc, what="branch arm")

	def run_loop(self, state: FlowState, node: Loop, run_body: RunSubgraph) -> FlowState:
		"""Iterate the loop body to a fixed point, then verify it once more for real."""
		limit = self.ctx.config.max_loop_iterations
		entry = state
		stable = False
		iterations = 0
		with self.ctx.muting():
			while iterations < limit:
				iterations += 1
				out = run_body(entry.copy(), node.body)
				candidate = self.join(entry, [entry, out], node.loc, what="loop body")
				if self.same(candidate, entry):
					stable = True
					break
				entry = candidate
		if stable:
			logger.debug("loop at %s stabilised after %d iteration(s)", node.loc.render(), iterations)
		else:
			logger.debug("loop at %s still changing after %d iteration(s)", node.loc.render(), iterations)
			self.ctx.reporter.report(
				DiagnosticKind.NON_TERMINATING_ANALYSIS,
				f"loop ownership state did not reach a fixed point within {limit} iteration(s)",
				span=node.loc,
			)
		if entry is not state:
			# Errors that only happen on the first trip through the body are
			# masked by the fixed point, so that trip is verified as well.
			with self.ctx.capturing(keep_drops=False) as first_trip:
				run_body(state.copy(), node.body)
		else:
			first_trip = None
		with self.ctx.capturing() as last_trip:
			final = run_body(entry.copy(), node.body)
		if first_trip is not None:
			self.ctx.reporter.extend(_union(first_trip.diagnostics, last_trip.diagnostics))
		else:
			self.ctx.reporter.extend(last_trip.diagnostics)
		return self.join(entry, [entry, final], node.loc, what="loop body")

	def join(self, ref: FlowState, incoming: List[FlowState], span: Span | None = None, *, what: str = "path") -> FlowState:
		"""
		Least-permissive join of `incoming` states.

		`ref` supplies the expected scope stack and binding set; every incoming
		state must agree with it and all incoming states must agree on which
		borrows are still active.
		"""
		first = incoming[0]
		for idx, other in enumerate(incoming):
			label = f"{what} #{idx}"
			self._check_agreement(ref, other, span, label)
			self._check_borrows(first, other, span, label)
		merged = first.copy()
		for bid, base in ref.bindings.items():
			versions = [other.bindings[bid] for other in incoming]
			merged.bindings[bid] = self._merge_binding(base, versions)
		for other in incoming:
			merged.rejected_refs |= other.rejected_refs
		return merged

	@staticmethod
	def same(a: FlowState, b: FlowState) -> bool:
		"""Fixed-point test: equal binding states and equal borrow tables."""
		return a.bindings == b.bindings and a.borrows == b.borrows and a.scope_ids() == b.scope_ids()

	@staticmethod
	def _merge_binding(base: Binding, versions: List[Binding]) -> Binding:
		state = versions[0].state
		for version in versions[1:]:
			state = merge_ownership_state(state, version.state)
		moved_at: Optional[Span] = None
		if state.kind is StateKind.MOVED_OUT:
			moved_at = next((v.moved_at for v in versions if v.moved_at is not None), None)
		return replace(base, state=state, moved_at=moved_at)

	@staticmethod
	def _check_agreement(ref: FlowState, other: FlowState, span: Span | None, label: str) -> None:
		if other.scope_ids() != ref.scope_ids():
			raise InternalInvariantViolation(f"{label} leaves the scope stack unbalanced", span)
		if set(other.bindings) != set(ref.bindings):
			raise InternalInvariantViolation(f"{label} changes the set of live bindings", span)
		escaped = sorted(set(other.borrows) - set(ref.borrows))
		if escaped:
			raise InternalInvariantViolation(f"{label}: borrow '{escaped[0]}' is still active at the join", span)

	@staticmethod
	def _check_borrows(first: FlowState, other: FlowState, span: Span | None, label: str) -> None:
		if other.borrows == first.borrows:
			return
		differing = sorted(set(first.borrows) ^ set(other.borrows))
		if differing:
			raise InternalInvariantViolation(
				f"{label}: borrow '{differing[0]}' is released on some paths only", span
			)
		raise InternalInvariantViolation(f"{label}: borrow table differs at the join", span)


def _diag_key(diag: Diagnostic) -> Tuple:
	span = diag.span
	return (diag.kind, diag.binding, diag.message, span.file, span.line, span.column)


def _union(first: List[Diagnostic], second: List[Diagnostic]) -> List[Diagnostic]:
	"""`first` followed by the diagnostics of `second` it does not already hold."""
	seen = {_diag_key(d) for d in first}
	merged = list(first)
	for diag in second:
		key = _diag_key(diag)
		if key not in seen:
			seen.add(key)
			merged.append(diag)
	return merged


__all__ = ["Reconciler", "RunSubgraph"]
