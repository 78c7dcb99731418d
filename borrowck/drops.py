# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Drop scheduling: which owned values are released where, and in what order.

On scope exit the bindings of that scope are visited in reverse declaration
order. Owned Move-typed values produce a DropEvent; moved-out and
uninitialized bindings are skipped (no double release); Copy-typed values
have no destructor and are released silently. A binding that is still
borrowed when its scope exits would leave a dangling borrow, which the scope
tracker rules out by releasing the scope's borrows first, so hitting one here
is a contract breach.

Events are only buffered here. The verifier hands them to the external
release hook after the whole pass completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from borrowck.core.diagnostics import InternalInvariantViolation
from borrowck.core.span import Span
from borrowck.state import AnalysisContext, Binding, FlowState, Scope, StateKind

SCOPE_EXIT = "scope-exit"
OVERWRITE = "overwrite"
TEMPORARY = "temporary"


@dataclass(frozen=True)
class DropEvent:
	"""One release of an owned value."""

	binding: str
	binding_id: int
	scope_id: int
	type_name: str
	reason: str = SCOPE_EXIT
	span: Span = field(default_factory=Span, compare=False)


class DropScheduler:
	def __init__(self, ctx: AnalysisContext) -> None:
		self.ctx = ctx

	def drop_scope(self, state: FlowState, scope: Scope, span: Span | None = None) -> List[DropEvent]:
		"""Release `scope`'s bindings in reverse declaration order and forget them."""
		events: List[DropEvent] = []
		for bid in reversed(scope.bindings):
			binding = state.binding(bid)
			if binding.state.borrowed:
				raise InternalInvariantViolation(
					f"'{binding.name}' is still {binding.state.describe()} at the end of its scope",
					span,
					binding.name,
				)
			if binding.state.kind is StateKind.LIVE_OWNED:
				event = self.drop_value(binding, SCOPE_EXIT, span)
				if event is not None:
					events.append(event)
		for bid in scope.bindings:
			del state.bindings[bid]
		return events

	def drop_value(self, binding: Binding, reason: str, span: Span | None = None) -> DropEvent | None:
		"""Schedule a release for an owned value; Copy values need none."""
		if self.ctx.classifier.is_copy(binding.ty):
			return None
		event = DropEvent(
			binding=binding.name,
			binding_id=binding.binding_id,
			scope_id=binding.scope_id,
			type_name=self.ctx.types.display(binding.ty),
			reason=reason,
			span=span or Span(),
		)
		self.ctx.drops.append(event)
		return event


__all__ = ["DropEvent", "DropScheduler", "SCOPE_EXIT", "OVERWRITE", "TEMPORARY"]
