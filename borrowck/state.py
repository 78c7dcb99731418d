# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Flow state for the verifier: bindings, scopes and active borrows.

This models the "what is true at this program point" part of the analysis
and the lattice operations over it. Policy (which transitions are legal)
lives in the component modules:
  * ownership.py   declare / assign / read / clone
  * borrows.py     create / release borrows
  * scopes.py      scope stack and name lookup
  * drops.py       releasing owned values at scope exit
  * reconcile.py   joins at branch ends and loop fixed points
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Set

from borrowck.core.config import VerifierConfig
from borrowck.core.diagnostics import DiagnosticReporter, InternalInvariantViolation
from borrowck.core.span import Span
from borrowck.core.types_core import TypeCategory, TypeClassifier, TypeId, TypeTable
from borrowck.graph import BorrowKind

BindingId = int
ScopeId = int


class StateKind(Enum):
	"""Shape of a binding's ownership state."""

	UNINIT = auto()              # declared without a value
	LIVE_OWNED = auto()
	MOVED_OUT = auto()
	BORROWED_SHARED = auto()
	BORROWED_EXCLUSIVE = auto()


@dataclass(frozen=True)
class OwnershipState:
	"""
	Ownership state of one binding at one program point.

	`count` is only meaningful for BORROWED_SHARED and is always >= 1 there;
	dropping the last shared borrow reverts to LIVE_OWNED instead of keeping a
	zero count around.
	"""

	kind: StateKind
	count: int = 0

	def __post_init__(self) -> None:
		if self.kind is StateKind.BORROWED_SHARED:
			if self.count < 1:
				raise InternalInvariantViolation(f"shared borrow count must be >= 1 (got {self.count})")
		elif self.count != 0:
			raise InternalInvariantViolation(f"borrow count set on non-shared state {self.kind.name}")

	@property
	def readable(self) -> bool:
		return self.kind in (StateKind.LIVE_OWNED, StateKind.BORROWED_SHARED)

	@property
	def borrowed(self) -> bool:
		return self.kind in (StateKind.BORROWED_SHARED, StateKind.BORROWED_EXCLUSIVE)

	def describe(self) -> str:
		if self.kind is StateKind.BORROWED_SHARED:
			return f"shared-borrowed({self.count})"
		return {
			StateKind.UNINIT: "uninitialized",
			StateKind.LIVE_OWNED: "owned",
			StateKind.MOVED_OUT: "moved",
			StateKind.BORROWED_EXCLUSIVE: "exclusively borrowed",
		}[self.kind]


UNINIT = OwnershipState(StateKind.UNINIT)
LIVE_OWNED = OwnershipState(StateKind.LIVE_OWNED)
MOVED_OUT = OwnershipState(StateKind.MOVED_OUT)
BORROWED_EXCLUSIVE = OwnershipState(StateKind.BORROWED_EXCLUSIVE)


def borrowed_shared(count: int) -> OwnershipState:
	return OwnershipState(StateKind.BORROWED_SHARED, count)


def merge_ownership_state(a: OwnershipState, b: OwnershipState) -> OwnershipState:
	"""
	Join operator used at branch ends and loop heads.

	Least permissive wins: MOVED_OUT dominates, then UNINIT. Borrow states are
	only joinable with themselves; the reconciler checks borrow tables agree
	before joining, so a mismatch here means the borrow table and the binding
	states have drifted apart.
	"""
	if a == b:
		return a
	if StateKind.MOVED_OUT in (a.kind, b.kind):
		return MOVED_OUT
	if StateKind.UNINIT in (a.kind, b.kind):
		return UNINIT
	raise InternalInvariantViolation(f"cannot join ownership states {a.describe()} and {b.describe()}")


@dataclass(frozen=True)
class Binding:
	"""A named, typed storage slot owned by one scope."""

	binding_id: BindingId
	name: str
	scope_id: ScopeId
	ty: TypeId
	category: TypeCategory
	state: OwnershipState = LIVE_OWNED
	declared_at: Span = field(default_factory=Span, compare=False)
	moved_at: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class Borrow:
	"""A non-owning access right to `referent`, bounded by `origin_scope`."""

	ref: str
	referent: BindingId
	referent_name: str
	kind: BorrowKind
	origin_scope: ScopeId
	span: Span = field(default_factory=Span, compare=False)
	active: bool = True


@dataclass
class Scope:
	"""
	Lexical scope: bindings in declaration order plus borrows created in it.

	`names` maps a name to the most recent binding declared under it here;
	earlier (moved-out) bindings with the same name stay in `bindings` so the
	drop order still covers them.

	`rejected` lists the borrow handles refused while this scope was innermost;
	they stop being releasable once it exits.
	"""

	scope_id: ScopeId
	parent: Optional[ScopeId] = None
	implicit: bool = False
	bindings: List[BindingId] = field(default_factory=list)
	names: Dict[str, BindingId] = field(default_factory=dict)
	borrows: List[str] = field(default_factory=list)
	rejected: List[str] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)

	def copy(self) -> "Scope":
		return replace(self, bindings=list(self.bindings), names=dict(self.names), borrows=list(self.borrows), rejected=list(self.rejected))


@dataclass
class FlowState:
	"""Analysis state at a program point."""

	bindings: Dict[BindingId, Binding] = field(default_factory=dict)
	scopes: List[Scope] = field(default_factory=list)
	borrows: Dict[str, Borrow] = field(default_factory=dict)
	rejected_refs: Set[str] = field(default_factory=set)

	def copy(self) -> "FlowState":
		"""Independent snapshot (Binding/Borrow are immutable, scopes are copied)."""
		return FlowState(
			bindings=dict(self.bindings),
			scopes=[s.copy() for s in self.scopes],
			borrows=dict(self.borrows),
			rejected_refs=set(self.rejected_refs),
		)

	@property
	def current_scope(self) -> Scope:
		if not self.scopes:
			raise InternalInvariantViolation("no open scope")
		return self.scopes[-1]

	def scope_ids(self) -> List[ScopeId]:
		return [s.scope_id for s in self.scopes]

	def lookup(self, name: str) -> Optional[Binding]:
		"""Innermost visible binding called `name`, or None."""
		for scope in reversed(self.scopes):
			bid = scope.names.get(name)
			if bid is not None:
				return self.bindings[bid]
		return None

	def binding(self, binding_id: BindingId) -> Binding:
		found = self.bindings.get(binding_id)
		if found is None:
			raise InternalInvariantViolation(f"binding #{binding_id} is not live at this point")
		return found

	def set_state(self, binding_id: BindingId, new_state: OwnershipState, *, moved_at: Span | None = None) -> Binding:
		old = self.binding(binding_id)
		if new_state.kind is StateKind.MOVED_OUT:
			updated = replace(old, state=new_state, moved_at=moved_at or old.moved_at)
		else:
			updated = replace(old, state=new_state, moved_at=None)
		self.bindings[binding_id] = updated
		return updated

	def borrows_of(self, binding_id: BindingId) -> List[Borrow]:
		return [b for b in self.borrows.values() if b.referent == binding_id]


@dataclass
class AnalysisContext:
	"""
	Per-pass collaborators shared by all components.

	`reporter` and `drops` are swapped out while the loop reconciler iterates
	towards a fixed point (see `muting` and `capturing`), so only the reporting
	passes over a loop body are observable.
	"""

	types: TypeTable
	classifier: TypeClassifier
	config: VerifierConfig
	reporter: DiagnosticReporter = field(default_factory=DiagnosticReporter)
	drops: list = field(default_factory=list)
	_next_binding: int = 1
	_next_scope: int = 1

	def new_binding_id(self) -> BindingId:
		bid = self._next_binding
		self._next_binding += 1
		return bid

	def new_scope_id(self) -> ScopeId:
		sid = self._next_scope
		self._next_scope += 1
		return sid

	@property
	def muted(self) -> bool:
		return self.reporter.muted

	@contextlib.contextmanager
	def muting(self) -> Iterator[None]:
		"""Discard diagnostics and drop events produced inside the block."""
		saved_reporter, saved_drops = self.reporter, self.drops
		self.reporter = DiagnosticReporter(muted=True)
		self.drops = []
		try:
			yield
		finally:
			self.reporter, self.drops = saved_reporter, saved_drops

	@contextlib.contextmanager
	def capturing(self, *, keep_drops: bool = True) -> Iterator[DiagnosticReporter]:
		"""
		Route diagnostics produced inside the block to a fresh reporter, yielded
		to the caller for re-reporting. The capture inherits the current muting.
		With `keep_drops=False` drop events are discarded as in `muting`.
		"""
		saved_reporter, saved_drops = self.reporter, self.drops
		self.reporter = DiagnosticReporter(muted=saved_reporter.muted)
		if not keep_drops:
			self.drops = []
		try:
			yield self.reporter
		finally:
			self.reporter, self.drops = saved_reporter, saved_drops


__all__ = [
	"AnalysisContext",
	"Binding",
	"BindingId",
	"Borrow",
	"FlowState",
	"OwnershipState",
	"Scope",
	"ScopeId",
	"StateKind",
	"UNINIT",
	"LIVE_OWNED",
	"MOVED_OUT",
	"BORROWED_EXCLUSIVE",
	"borrowed_shared",
	"merge_ownership_state",
]
