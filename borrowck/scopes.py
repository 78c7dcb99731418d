# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Scope tracker: the nested scope stack of a verification pass.

Explicit scopes come from `ScopeEnter`/`ScopeExit` nodes. Implicit scopes are
opened by the verifier itself around the whole graph, every branch arm and
every loop body; an explicit `ScopeExit` may never close one of those.

Exiting a scope first releases the borrows created in it, then hands its
bindings to the drop scheduler. Borrow handles refused inside the scope
stop being releasable once it is closed.
"""

from __future__ import annotations

import logging
from typing import Optional

from borrowck.borrows import BorrowChecker
from borrowck.core.diagnostics import InternalInvariantViolation
from borrowck.core.span import Span
from borrowck.drops import DropScheduler
from borrowck.state import AnalysisContext, Binding, FlowState, Scope

logger = logging.getLogger(__name__)


class ScopeTracker:
	def __init__(self, ctx: AnalysisContext, borrows: BorrowChecker, drops: DropScheduler) -> None:
		self.ctx = ctx
		self.borrows = borrows
		self.drops = drops

	def enter(self, state: FlowState, span: Span | None = None, *, implicit: bool = False) -> Scope:
		parent = state.scopes[-1].scope_id if state.scopes else None
		scope = Scope(scope_id=self.ctx.new_scope_id(), parent=parent, implicit=implicit, span=span or Span())
		state.scopes.append(scope)
		logger.debug("enter scope #%d (parent=%s, implicit=%s)", scope.scope_id, parent, implicit)
		return scope

	def exit(self, state: FlowState, span: Span | None = None, *, implicit: bool = False) -> Scope:
		"""
		Close the innermost scope.

		`implicit` must match how the scope was opened: an explicit ScopeExit
		reaching an implicit scope means the graph's ScopeEnter/ScopeExit nodes
		are unbalanced.
		"""
		if not state.scopes:
			raise InternalInvariantViolation("scope exit with no open scope", span)
		scope = state.scopes[-1]
		if scope.implicit != implicit:
			if implicit:
				raise InternalInvariantViolation(
					f"scope #{scope.scope_id} opened by ScopeEnter is never closed", scope.span
				)
			raise InternalInvariantViolation("ScopeExit without a matching ScopeEnter", span)
		self.borrows.release_scope_borrows(state, scope, span)
		self.drops.drop_scope(state, scope, span)
		state.scopes.pop()
		self.borrows.forget_rejected(state, scope)
		logger.debug("exit scope #%d", scope.scope_id)
		return scope

	def lookup(self, state: FlowState, name: str) -> Optional[Binding]:
		return state.lookup(name)

	def add_binding(self, state: FlowState, binding: Binding) -> None:
		"""Register `binding` as the newest declaration of the current scope."""
		scope = state.current_scope
		if binding.scope_id != scope.scope_id:
			raise InternalInvariantViolation(
				f"binding '{binding.name}' declared for scope #{binding.scope_id} inside scope #{scope.scope_id}"
			)
		state.bindings[binding.binding_id] = binding
		scope.bindings.append(binding.binding_id)
		scope.names[binding.name] = binding.binding_id


__all__ = ["ScopeTracker"]
