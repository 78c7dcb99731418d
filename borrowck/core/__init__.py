"""
borrowck.core: shared primitives used by every stage of the verifier.

Modules:
  - span: source span carried by graph nodes and diagnostics
  - diagnostics: Diagnostic, DiagnosticReporter, InternalInvariantViolation
  - types_core: TypeId/TypeTable primitives and the Copy/Move classifier
  - config: VerifierConfig limits
"""

__all__ = [
	"span",
	"diagnostics",
	"types_core",
	"config",
]
