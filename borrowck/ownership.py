# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Ownership state store operations: declare, assign, read, clone.

Semantics:
- Copy-typed sources are duplicated by assignment and stay usable.
- Move-typed sources must be owned and unborrowed; assignment transfers
  ownership and leaves the source MOVED_OUT until it is re-initialized or a
  new binding with the same name is declared.
- Writing into an existing owned Move-typed destination drops the old value
  first.
- A rejected statement still initializes its destination, so one mistake does
  not cascade into "use of uninitialized" reports further down.
"""

from __future__ import annotations

from typing import Optional

from borrowck.borrows import borrow_notes
from borrowck.core.diagnostics import DiagnosticKind, InternalInvariantViolation, RelatedInfo
from borrowck.core.span import Span
from borrowck.core.types_core import Semantics, TypeId
from borrowck.drops import OVERWRITE, TEMPORARY, DropScheduler
from borrowck.scopes import ScopeTracker
from borrowck.state import (
	LIVE_OWNED,
	MOVED_OUT,
	UNINIT,
	AnalysisContext,
	Binding,
	FlowState,
	OwnershipState,
	StateKind,
)


class OwnershipStore:
	def __init__(self, ctx: AnalysisContext, scopes: ScopeTracker, drops: DropScheduler) -> None:
		self.ctx = ctx
		self.scopes = scopes
		self.drops = drops

	def declare(
		self,
		state: FlowState,
		name: str,
		ty: TypeId,
		span: Span | None = None,
		*,
		initialized: bool = True,
	) -> Optional[Binding]:
		"""
		Declare `name` in the current scope.

		Only a live binding blocks the name: a moved-out one may be redeclared,
		which shadows it with a fresh binding.
		"""
		if ty not in self.ctx.types:
			raise InternalInvariantViolation(f"'{name}' declared with unknown type id {ty}", span, name)
		existing = state.lookup(name)
		if existing is not None and existing.state.kind is not StateKind.MOVED_OUT:
			self.ctx.reporter.report(
				DiagnosticKind.DUPLICATE_BINDING,
				f"'{name}' is already declared and live in an enclosing scope",
				binding=name,
				span=span,
				related=[RelatedInfo("previous declaration here", existing.declared_at)],
			)
			return None
		return self._new_binding(state, name, ty, LIVE_OWNED if initialized else UNINIT, span)

	def read(self, state: FlowState, name: str, span: Span | None = None) -> bool:
		return self._use(state, name, span, "read") is not None

	def assign(self, state: FlowState, dest: str, src: Optional[str], span: Span | None = None) -> Optional[Binding]:
		"""
		`dest = src` (or `dest = <fresh value>` when `src` is None).

		Returns the destination binding on success, None when rejected.
		"""
		if src is None:
			return self._write(state, dest, None, span)
		source = state.lookup(src)
		if source is None:
			self._undeclared(src, span)
			return None
		if self.ctx.classifier.classify(source.ty) is Semantics.COPY:
			ok = self._use(state, src, span, "copy") is not None
		else:
			ok = self._check_movable(state, source, span)
			if ok:
				state.set_state(source.binding_id, MOVED_OUT, moved_at=span or Span())
		written = self._write(state, dest, source.ty, span)
		return written if ok else None

	def clone(self, state: FlowState, src: str, dest: Optional[str], span: Span | None = None) -> Optional[Binding]:
		"""
		Deep, independent duplicate of `src`. The source state is untouched.

		A clone without a destination is a temporary and is dropped on the spot.
		"""
		source = self._use(state, src, span, "clone")
		if source is None:
			known = state.lookup(src)
			if dest is not None and known is not None:
				self._write(state, dest, known.ty, span)
			return None
		if dest is None:
			temp = Binding(
				binding_id=self.ctx.new_binding_id(),
				name=src,
				scope_id=state.current_scope.scope_id,
				ty=source.ty,
				category=source.category,
				declared_at=span or Span(),
			)
			self.drops.drop_value(temp, TEMPORARY, span)
			return temp
		return self._write(state, dest, source.ty, span)

	def _new_binding(
		self,
		state: FlowState,
		name: str,
		ty: TypeId,
		initial: OwnershipState,
		span: Span | None,
	) -> Binding:
		binding = Binding(
			binding_id=self.ctx.new_binding_id(),
			name=name,
			scope_id=state.current_scope.scope_id,
			ty=ty,
			category=self.ctx.classifier.category(ty),
			state=initial,
			declared_at=span or Span(),
		)
		self.scopes.add_binding(state, binding)
		return binding

	def _write(self, state: FlowState, dest: str, ty: Optional[TypeId], span: Span | None) -> Optional[Binding]:
		"""Store a value into `dest`, declaring it implicitly when it is not visible."""
		target = state.lookup(dest)
		if target is None:
			if ty is None:
				self.ctx.reporter.report(
					DiagnosticKind.UNINITIALIZED_USE,
					f"assignment to undeclared binding '{dest}'",
					binding=dest,
					span=span,
				)
				return None
			return self._new_binding(state, dest, ty, LIVE_OWNED, span)
		if ty is not None and ty != target.ty:
			types = self.ctx.types
			raise InternalInvariantViolation(
				f"'{dest}' of type {types.display(target.ty)} assigned a value of type {types.display(ty)}",
				span,
				dest,
			)
		if target.state.borrowed:
			self.ctx.reporter.report(
				DiagnosticKind.CONFLICTING_BORROW,
				f"cannot assign to '{dest}' while it is borrowed",
				binding=dest,
				span=span,
				related=borrow_notes(state.borrows_of(target.binding_id)),
			)
			return None
		if target.state.kind is StateKind.LIVE_OWNED:
			self.drops.drop_value(target, OVERWRITE, span)
		return state.set_state(target.binding_id, LIVE_OWNED)

	def _use(self, state: FlowState, name: str, span: Span | None, verb: str) -> Optional[Binding]:
		"""Shared precondition of read/copy/clone: owned or shared-borrowed."""
		binding = state.lookup(name)
		if binding is None:
			self._undeclared(name, span)
			return None
		kind = binding.state.kind
		if binding.state.readable:
			return binding
		if kind is StateKind.MOVED_OUT:
			self._moved(binding, span, f"use after move of '{name}'")
		elif kind is StateKind.UNINIT:
			self.ctx.reporter.report(
				DiagnosticKind.UNINITIALIZED_USE,
				f"use of uninitialized binding '{name}'",
				binding=name,
				span=span,
			)
		else:
			self.ctx.reporter.report(
				DiagnosticKind.CONFLICTING_BORROW,
				f"cannot {verb} '{name}' while an exclusive borrow is active",
				binding=name,
				span=span,
				related=borrow_notes(state.borrows_of(binding.binding_id)),
			)
		return None

	def _check_movable(self, state: FlowState, source: Binding, span: Span | None) -> bool:
		kind = source.state.kind
		if kind is StateKind.LIVE_OWNED:
			return True
		if kind is StateKind.MOVED_OUT:
			self._moved(source, span, f"use after move of '{source.name}'")
		elif kind is StateKind.UNINIT:
			self.ctx.reporter.report(
				DiagnosticKind.UNINITIALIZED_USE,
				f"cannot move uninitialized binding '{source.name}'",
				binding=source.name,
				span=span,
			)
		else:
			self.ctx.reporter.report(
				DiagnosticKind.CONFLICTING_BORROW,
				f"cannot move '{source.name}' while borrowed",
				binding=source.name,
				span=span,
				related=borrow_notes(state.borrows_of(source.binding_id)),
			)
		return False

	def _moved(self, binding: Binding, span: Span | None, message: str) -> None:
		related = [RelatedInfo("value moved here", binding.moved_at)] if binding.moved_at is not None else []
		self.ctx.reporter.report(
			DiagnosticKind.MOVED_VALUE_USE,
			message,
			binding=binding.name,
			span=span,
			related=related,
		)

	def _undeclared(self, name: str, span: Span | None) -> None:
		self.ctx.reporter.report(
			DiagnosticKind.UNINITIALIZED_USE,
			f"use of undeclared binding '{name}'",
			binding=name,
			span=span,
		)


__all__ = ["OwnershipStore"]
