# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
borrowck: static ownership and borrow verification over structured graphs.

Layout:
  core/       spans, diagnostics, config, type table + Copy/Move classifier
  graph       input representation (Declare/Assign/.../Branch/Loop)
  state       flow state and the ownership lattice
  ownership   declare / assign / read / clone
  borrows     shared/exclusive borrow discipline
  scopes      scope stack
  drops       drop scheduling
  reconcile   branch joins and loop fixed points
  verifier    the pass itself (`verify`)
  parser/     textual ownership scripts → graph (lark)
  cli         `borrowck` command-line driver
"""

from borrowck.core.config import VerifierConfig
from borrowck.core.diagnostics import Diagnostic, DiagnosticKind, InternalInvariantViolation
from borrowck.core.types_core import Semantics, TypeCategory, TypeTable, classify
from borrowck.result import Accepted, Rejected, VerificationResult
from borrowck.verifier import Verifier, verify

__all__ = [
	"Accepted",
	"Diagnostic",
	"DiagnosticKind",
	"InternalInvariantViolation",
	"Rejected",
	"Semantics",
	"TypeCategory",
	"TypeTable",
	"VerificationResult",
	"Verifier",
	"VerifierConfig",
	"classify",
	"verify",
]
