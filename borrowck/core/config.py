# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Verifier configuration.

Both limits bound the abstract state lattice: the loop reconciler gives up
after `max_loop_iterations` candidate entry states, and shared borrow counts
never exceed `max_shared_borrows`.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_LOOP_ITERATIONS = 64
DEFAULT_MAX_SHARED_BORROWS = 255


@dataclass(frozen=True)
class VerifierConfig:
	"""Knobs for a verification pass."""

	max_loop_iterations: int = DEFAULT_MAX_LOOP_ITERATIONS
	max_shared_borrows: int = DEFAULT_MAX_SHARED_BORROWS

	def __post_init__(self) -> None:
		if self.max_loop_iterations < 1:
			raise ValueError("max_loop_iterations must be >= 1")
		if self.max_shared_borrows < 1:
			raise ValueError("max_shared_borrows must be >= 1")


__all__ = ["VerifierConfig", "DEFAULT_MAX_LOOP_ITERATIONS", "DEFAULT_MAX_SHARED_BORROWS"]
