"""
Diagnostic structure and collector for the verification pass.

User-facing violations are recorded as `Diagnostic` values and collected by a
`DiagnosticReporter` so one pass can surface several independent problems.
Contract breaches by the caller are not diagnostics in that sense: they raise
`InternalInvariantViolation` and abort the pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .span import Span


class DiagnosticKind(Enum):
	"""Diagnostic taxonomy; `value` doubles as the stable diagnostic code."""

	MOVED_VALUE_USE = "moved-value-use"
	CONFLICTING_BORROW = "conflicting-borrow"
	DUPLICATE_BINDING = "duplicate-binding"
	UNINITIALIZED_USE = "uninitialized-use"
	NON_TERMINATING_ANALYSIS = "non-terminating-analysis"
	INTERNAL_INVARIANT_VIOLATION = "internal-invariant-violation"

	@property
	def fatal(self) -> bool:
		return self is DiagnosticKind.INTERNAL_INVARIANT_VIOLATION


@dataclass(frozen=True)
class RelatedInfo:
	"""Secondary location attached to a diagnostic (e.g. where a value moved)."""

	message: str
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class Diagnostic:
	"""Represents a verification diagnostic. Immutable once reported."""

	message: str
	kind: DiagnosticKind
	binding: Optional[str] = None
	code: str | None = None
	phase: str | None = "borrowcheck"
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	related: Tuple[RelatedInfo, ...] = ()

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			object.__setattr__(self, "span", Span())
		if self.code is None:
			object.__setattr__(self, "code", self.kind.value)
		object.__setattr__(self, "related", tuple(self.related))

	@property
	def notes(self) -> List[str]:
		"""Related info rendered as plain note strings."""
		out: List[str] = []
		for rel in self.related:
			if rel.span.known:
				out.append(f"{rel.message} at {rel.span.render()}")
			else:
				out.append(rel.message)
		return out


class InternalInvariantViolation(AssertionError):
	"""
	The caller handed the engine a graph that breaks a structural precondition
	(unbalanced scopes, releasing an unknown borrow, a borrow escaping its
	scope, ...). The soundness of the current run cannot be trusted, so the
	pass aborts instead of collecting this as a diagnostic.
	"""

	def __init__(self, message: str, span: Span | None = None, binding: str | None = None) -> None:
		super().__init__(message)
		self.diagnostic = Diagnostic(
			message=message,
			kind=DiagnosticKind.INTERNAL_INVARIANT_VIOLATION,
			binding=binding,
			severity="fatal",
			span=span or Span(),
		)


class DiagnosticReporter:
	"""
	Ordered diagnostic sink.

	A muted reporter swallows everything it is given; the loop reconciler uses
	one while iterating towards a fixed point so intermediate iterations do not
	produce duplicate reports.
	"""

	def __init__(self, *, muted: bool = False) -> None:
		self.muted = muted
		self._diagnostics: List[Diagnostic] = []

	def report(
		self,
		kind: DiagnosticKind,
		message: str,
		*,
		binding: str | None = None,
		span: Span | None = None,
		related: List[RelatedInfo] | None = None,
	) -> None:
		if kind.fatal:
			raise InternalInvariantViolation(message, span, binding)
		if self.muted:
			return
		self._diagnostics.append(
			Diagnostic(
				message=message,
				kind=kind,
				binding=binding,
				span=span or Span(),
				related=tuple(related or ()),
			)
		)

	def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
		"""Re-report diagnostics collected elsewhere (e.g. by `AnalysisContext.capturing`)."""
		if self.muted:
			return
		self._diagnostics.extend(diagnostics)

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return list(self._diagnostics)

	def has_errors(self) -> bool:
		return any(d.severity == "error" for d in self._diagnostics)

	def __len__(self) -> int:
		return len(self._diagnostics)


__all__ = [
	"Diagnostic",
	"DiagnosticKind",
	"DiagnosticReporter",
	"InternalInvariantViolation",
	"RelatedInfo",
]
