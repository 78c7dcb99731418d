# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Borrow checker: shared/exclusive aliasing discipline.

Rules:
- Shared borrows require the referent to be owned or already shared-borrowed;
  each one bumps the shared count (capped by `max_shared_borrows`).
- An exclusive borrow requires the referent to be owned with no active borrow
  of either kind.
- Releasing decrements / clears, reverting to owned once nothing is left.
- Borrows are tied to the scope they were created in and are released
  automatically when that scope exits. Because the referent is visible where
  the borrow is created, its scope always encloses the borrow's scope; a borrow
  found outliving its referent therefore means the flow state is corrupt.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

from borrowck.core.diagnostics import DiagnosticKind, InternalInvariantViolation, RelatedInfo
from borrowck.core.span import Span
from borrowck.graph import BorrowKind
from borrowck.state import (
	BORROWED_EXCLUSIVE,
	LIVE_OWNED,
	AnalysisContext,
	Binding,
	Borrow,
	FlowState,
	Scope,
	StateKind,
	borrowed_shared,
)

logger = logging.getLogger(__name__)


def kind_label(kind: BorrowKind) -> str:
	return "shared" if kind is BorrowKind.SHARED else "exclusive"


def borrow_notes(borrows: List[Borrow]) -> List[RelatedInfo]:
	"""Related info pointing at the creation site of each existing borrow."""
	return [
		RelatedInfo(f"{kind_label(b.kind)} borrow '{b.ref}' created here (scope #{b.origin_scope})", b.span)
		for b in borrows
	]


class BorrowChecker:
	"""Creates and releases borrows on a FlowState, reporting conflicts."""

	def __init__(self, ctx: AnalysisContext) -> None:
		self.ctx = ctx

	def create_borrow(
		self,
		state: FlowState,
		ref: str,
		name: str,
		kind: BorrowKind,
		span: Span | None = None,
	) -> Optional[Borrow]:
		"""
		Borrow `name` under handle `ref`.

		Returns the new Borrow, or None when the borrow is rejected. A rejected
		handle is remembered so releasing it later is not a contract breach.
		"""
		span = span or Span()
		if ref in state.borrows:
			raise InternalInvariantViolation(f"borrow handle '{ref}' is already active", span, name)
		binding = state.lookup(name)
		if binding is None:
			self.ctx.reporter.report(
				DiagnosticKind.UNINITIALIZED_USE,
				f"cannot borrow undeclared binding '{name}'",
				binding=name,
				span=span,
			)
			self._reject(state, ref)
			return None
		curr = binding.state
		if curr.kind is StateKind.MOVED_OUT:
			related = [RelatedInfo("value moved here", binding.moved_at)] if binding.moved_at else []
			self.ctx.reporter.report(
				DiagnosticKind.MOVED_VALUE_USE,
				f"cannot borrow '{name}': value has been moved",
				binding=name,
				span=span,
				related=related,
			)
			self._reject(state, ref)
			return None
		if curr.kind is StateKind.UNINIT:
			self.ctx.reporter.report(
				DiagnosticKind.UNINITIALIZED_USE,
				f"cannot borrow '{name}': binding is not initialized",
				binding=name,
				span=span,
			)
			self._reject(state, ref)
			return None

		if kind is BorrowKind.SHARED:
			if curr.kind is StateKind.BORROWED_EXCLUSIVE:
				self._conflict(state, binding, kind, span)
				self._reject(state, ref)
				return None
			count = curr.count + 1 if curr.kind is StateKind.BORROWED_SHARED else 1
			if count > self.ctx.config.max_shared_borrows:
				self.ctx.reporter.report(
					DiagnosticKind.CONFLICTING_BORROW,
					f"cannot borrow '{name}': more than {self.ctx.config.max_shared_borrows} shared borrows active",
					binding=name,
					span=span,
				)
				self._reject(state, ref)
				return None
			new_state = borrowed_shared(count)
		else:
			if curr.borrowed:
				self._conflict(state, binding, kind, span)
				self._reject(state, ref)
				return None
			new_state = BORROWED_EXCLUSIVE

		scope = state.current_scope
		borrow = Borrow(
			ref=ref,
			referent=binding.binding_id,
			referent_name=binding.name,
			kind=kind,
			origin_scope=scope.scope_id,
			span=span,
		)
		state.borrows[ref] = borrow
		scope.borrows.append(ref)
		state.rejected_refs.discard(ref)
		state.set_state(binding.binding_id, new_state)
		return borrow

	def release_borrow(self, state: FlowState, ref: str, span: Span | None = None) -> Optional[Borrow]:
		"""Explicit release by handle. Releasing a rejected handle is a no-op."""
		borrow = state.borrows.get(ref)
		if borrow is not None:
			return self.release(state, borrow, span)
		if ref in state.rejected_refs:
			state.rejected_refs.discard(ref)
			return None
		raise InternalInvariantViolation(f"release of unknown or inactive borrow '{ref}'", span)

	def release(self, state: FlowState, borrow: Borrow, span: Span | None = None) -> Borrow:
		"""Deactivate `borrow` and restore its referent's state."""
		if state.borrows.get(borrow.ref) != borrow:
			raise InternalInvariantViolation(f"borrow '{borrow.ref}' is not active", span)
		origin = self._scope(state, borrow.origin_scope)
		if origin is None:
			raise InternalInvariantViolation(
				f"borrow '{borrow.ref}' outlived its scope #{borrow.origin_scope}", span, borrow.referent_name
			)
		referent = state.bindings.get(borrow.referent)
		if referent is None or self._scope(state, referent.scope_id) is None:
			raise InternalInvariantViolation(
				f"borrow '{borrow.ref}' outlives its referent '{borrow.referent_name}'", span, borrow.referent_name
			)
		curr = referent.state
		if borrow.kind is BorrowKind.SHARED and curr.kind is StateKind.BORROWED_SHARED:
			new_state = borrowed_shared(curr.count - 1) if curr.count > 1 else LIVE_OWNED
		elif borrow.kind is BorrowKind.EXCLUSIVE and curr.kind is StateKind.BORROWED_EXCLUSIVE:
			new_state = LIVE_OWNED
		else:
			raise InternalInvariantViolation(
				f"{kind_label(borrow.kind)} borrow '{borrow.ref}' active but '{referent.name}' is {curr.describe()}",
				span,
				referent.name,
			)
		del state.borrows[borrow.ref]
		origin.borrows.remove(borrow.ref)
		state.set_state(referent.binding_id, new_state)
		return replace(borrow, active=False)

	def release_scope_borrows(self, state: FlowState, scope: Scope, span: Span | None = None) -> List[Borrow]:
		"""Release every borrow created in `scope`, most recent first."""
		released: List[Borrow] = []
		for ref in reversed(list(scope.borrows)):
			borrow = state.borrows.get(ref)
			if borrow is None:
				raise InternalInvariantViolation(f"scope #{scope.scope_id} lists inactive borrow '{ref}'", span)
			released.append(self.release(state, borrow, span))
		if released:
			logger.debug("scope #%d auto-released %s", scope.scope_id, ", ".join(b.ref for b in released))
		return released

	@staticmethod
	def _reject(state: FlowState, ref: str) -> None:
		state.rejected_refs.add(ref)
		state.current_scope.rejected.append(ref)

	def forget_rejected(self, state: FlowState, scope: Scope) -> None:
		"""Rejected handles of an exiting scope are no longer releasable."""
		for ref in scope.rejected:
			if not any(ref in other.rejected for other in state.scopes if other is not scope):
				state.rejected_refs.discard(ref)

	def _conflict(self, state: FlowState, binding: Binding, kind: BorrowKind, span: Span) -> None:
		existing = state.borrows_of(binding.binding_id)
		held = kind_label(existing[0].kind) if existing else binding.state.describe()
		self.ctx.reporter.report(
			DiagnosticKind.CONFLICTING_BORROW,
			f"cannot take {kind_label(kind)} borrow of '{binding.name}' while {held} borrow active",
			binding=binding.name,
			span=span,
			related=borrow_notes(existing),
		)

	@staticmethod
	def _scope(state: FlowState, scope_id: int) -> Optional[Scope]:
		for scope in state.scopes:
			if scope.scope_id == scope_id:
				return scope
		return None


__all__ = ["BorrowChecker", "borrow_notes", "kind_label"]
