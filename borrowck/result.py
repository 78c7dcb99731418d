# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Verification results.

A pass produces exactly one result: `Accepted` when no diagnostic was
collected, `Rejected` otherwise. Both carry the drop schedule observed during
the pass (the order in which owned values are released).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Tuple

from borrowck.core.diagnostics import Diagnostic, DiagnosticKind
from borrowck.drops import DropEvent


@dataclass(frozen=True)
class VerificationResult:
	unit: str = "<graph>"
	drops: Tuple[DropEvent, ...] = ()

	accepted: ClassVar[bool] = False

	def diagnostics(self) -> Tuple[Diagnostic, ...]:
		return ()

	def find(self, kind: DiagnosticKind, binding: str | None = None) -> Tuple[Diagnostic, ...]:
		"""Diagnostics of `kind`, optionally restricted to one binding name."""
		return tuple(
			d for d in self.diagnostics() if d.kind is kind and (binding is None or d.binding == binding)
		)

	def drop_order(self) -> Tuple[str, ...]:
		return tuple(ev.binding for ev in self.drops)


@dataclass(frozen=True)
class Accepted(VerificationResult):
	accepted: ClassVar[bool] = True


@dataclass(frozen=True)
class Rejected(VerificationResult):
	errors: Tuple[Diagnostic, ...] = ()

	def diagnostics(self) -> Tuple[Diagnostic, ...]:
		return self.errors


__all__ = ["VerificationResult", "Accepted", "Rejected"]
