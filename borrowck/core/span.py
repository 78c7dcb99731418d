# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

Graph nodes carry a Span so diagnostics can point back at whatever the
front-end considers a location. The engine never interprets it beyond
rendering; front-ends that have no location info simply leave `Span()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column plus raw front-end loc)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_loc(cls, loc: Any) -> "Span":
		"""
		Construct a Span from an existing front-end location object.

		If `loc` is already a Span, it is returned unchanged; otherwise common
		`file`/`line`/`column` attributes are copied and the object itself is
		kept in `raw`.
		"""
		if loc is None:
			return cls()
		if isinstance(loc, cls):
			return loc
		return cls(
			file=getattr(loc, "file", None) or getattr(loc, "filename", None) or None,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			raw=loc,
		)

	@property
	def known(self) -> bool:
		return self.line is not None

	def render(self, default_file: str | None = None) -> str:
		"""Render as `file:line:col`, using `?` for missing parts."""
		file = self.file or default_file or "<graph>"
		line = "?" if self.line is None else str(self.line)
		col = "?" if self.column is None else str(self.column)
		return f"{file}:{line}:{col}"


__all__ = ["Span"]
