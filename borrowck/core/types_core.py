# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Minimal type core plus the Copy/Move classifier.

TypeIds are opaque ints indexing into a TypeTable. The verifier only needs to
know one thing about a type: does assignment duplicate it implicitly (Copy) or
transfer ownership (Move)? `TypeClassifier` answers that, and the binding
category derived from it, without ever failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional, Sequence, Tuple


TypeId = int  # opaque handle into the TypeTable


class TypeKind(Enum):
	"""Kinds of types understood by the type core."""

	SCALAR = auto()   # Int, Bool, Float, Char, ...
	OWNED = auto()    # heap-resident / unbounded data: String, Vec[T], Box[T]
	ARRAY = auto()    # fixed-size homogeneous aggregate: [T; N]
	TUPLE = auto()    # fixed-size heterogeneous aggregate: (A, B)
	STRUCT = auto()   # named heterogeneous aggregate
	REF = auto()      # reference type; shared refs are Copy, exclusive refs are not
	UNKNOWN = auto()


class Semantics(Enum):
	"""What assignment does with a value of a given type."""

	COPY = auto()
	MOVE = auto()


class TypeCategory(Enum):
	"""Declared type category recorded on every binding."""

	SCALAR_COPY = auto()
	COMPOUND_COPY = auto()
	COMPOUND_OWNED = auto()


_AGGREGATES = (TypeKind.ARRAY, TypeKind.TUPLE, TypeKind.STRUCT)


@dataclass(frozen=True)
class TypeDef:
	"""Definition of a type stored in the TypeTable."""

	kind: TypeKind
	name: str
	param_types: Tuple[TypeId, ...] = ()
	field_names: Tuple[str, ...] = ()  # only meaningful for TypeKind.STRUCT
	length: int | None = None  # only meaningful for TypeKind.ARRAY
	ref_mut: bool | None = None  # only meaningful for TypeKind.REF


class TypeTable:
	"""
	Type table that owns TypeIds.

	Structural types (arrays, tuples, owned containers, refs) are interned so
	equal shapes share a TypeId; scalars and structs are interned by name.
	"""

	def __init__(self) -> None:
		self._defs: Dict[TypeId, TypeDef] = {}
		self._interned: Dict[TypeDef, TypeId] = {}
		self._by_name: Dict[str, TypeId] = {}
		self._next_id: TypeId = 1  # reserve 0 for "invalid"

	def new_scalar(self, name: str) -> TypeId:
		"""Register (or return) a scalar type such as Int or Bool."""
		return self._named(TypeDef(TypeKind.SCALAR, name))

	def ensure_int(self) -> TypeId:
		return self.new_scalar("Int")

	def ensure_uint(self) -> TypeId:
		return self.new_scalar("Uint")

	def ensure_float(self) -> TypeId:
		return self.new_scalar("Float")

	def ensure_bool(self) -> TypeId:
		return self.new_scalar("Bool")

	def ensure_char(self) -> TypeId:
		return self.new_scalar("Char")

	def new_owned(self, name: str, params: Sequence[TypeId] = ()) -> TypeId:
		"""Register an owned (heap-resident) type, optionally generic over `params`."""
		td = TypeDef(TypeKind.OWNED, name, tuple(params))
		if not params:
			return self._named(td)
		return self._intern(td)

	def ensure_string(self) -> TypeId:
		return self.new_owned("String")

	def new_vec(self, elem: TypeId) -> TypeId:
		return self.new_owned("Vec", [elem])

	def new_box(self, inner: TypeId) -> TypeId:
		return self.new_owned("Box", [inner])

	def new_array(self, elem: TypeId, length: int) -> TypeId:
		"""Register a fixed-size array `[elem; length]`."""
		if length < 0:
			raise ValueError("array length must be non-negative")
		return self._intern(TypeDef(TypeKind.ARRAY, "Array", (elem,), length=length))

	def new_tuple(self, elems: Sequence[TypeId]) -> TypeId:
		return self._intern(TypeDef(TypeKind.TUPLE, "Tuple", tuple(elems)))

	def new_struct(self, name: str, fields: Sequence[Tuple[str, TypeId]]) -> TypeId:
		"""Register a named struct. Redefining an existing name is an error."""
		if name in self._by_name:
			raise ValueError(f"type '{name}' is already defined")
		names = tuple(f for f, _ in fields)
		if len(set(names)) != len(names):
			raise ValueError(f"struct '{name}' has duplicate field names")
		td = TypeDef(TypeKind.STRUCT, name, tuple(t for _, t in fields), field_names=names)
		return self._named(td)

	def new_ref(self, inner: TypeId, is_mut: bool) -> TypeId:
		name = "RefMut" if is_mut else "Ref"
		return self._intern(TypeDef(TypeKind.REF, name, (inner,), ref_mut=is_mut))

	def ensure_unknown(self) -> TypeId:
		return self._named(TypeDef(TypeKind.UNKNOWN, "Unknown"))

	def lookup(self, name: str) -> Optional[TypeId]:
		"""Find a named type (scalar, non-generic owned type, struct)."""
		return self._by_name.get(name)

	def get(self, ty: TypeId) -> TypeDef:
		"""Fetch the TypeDef for a given TypeId."""
		return self._defs[ty]

	def __contains__(self, ty: object) -> bool:
		return ty in self._defs

	def display(self, ty: TypeId) -> str:
		"""Human-readable rendering used in diagnostics and drop events."""
		td = self._defs.get(ty)
		if td is None:
			return f"<type {ty}>"
		if td.kind is TypeKind.ARRAY:
			return f"[{self.display(td.param_types[0])}; {td.length}]"
		if td.kind is TypeKind.TUPLE:
			return "(" + ", ".join(self.display(p) for p in td.param_types) + ")"
		if td.kind is TypeKind.REF:
			prefix = "&mut " if td.ref_mut else "&"
			return prefix + self.display(td.param_types[0])
		if td.kind is TypeKind.OWNED and td.param_types:
			return f"{td.name}[" + ", ".join(self.display(p) for p in td.param_types) + "]"
		return td.name

	def _named(self, td: TypeDef) -> TypeId:
		existing = self._by_name.get(td.name)
		if existing is not None:
			if self._defs[existing].kind is not td.kind:
				raise ValueError(f"type '{td.name}' is already defined with a different kind")
			return existing
		ty_id = self._add(td)
		self._by_name[td.name] = ty_id
		return ty_id

	def _intern(self, td: TypeDef) -> TypeId:
		for param in td.param_types:
			if param not in self._defs:
				raise KeyError(f"unknown component type id {param}")
		existing = self._interned.get(td)
		if existing is not None:
			return existing
		ty_id = self._add(td)
		self._interned[td] = ty_id
		return ty_id

	def _add(self, td: TypeDef) -> TypeId:
		ty_id = self._next_id
		self._next_id += 1
		self._defs[ty_id] = td
		return ty_id


class TypeClassifier:
	"""
	Copy/Move classification over a TypeTable.

	- Scalars and shared references are Copy.
	- Arrays, tuples and structs are Copy iff every component is Copy.
	- Owned types, exclusive references and Unknown are Move (Unknown is
	  conservative: guessing Copy would hide use-after-move).

	Types are built bottom-up (components must exist before the aggregate), so
	recursion always terminates. Results are memoised per TypeId.
	"""

	def __init__(self, table: TypeTable) -> None:
		self.table = table
		self._cache: Dict[TypeId, Semantics] = {}

	def classify(self, ty: Optional[TypeId]) -> Semantics:
		if ty is None or ty not in self.table:
			return Semantics.MOVE
		cached = self._cache.get(ty)
		if cached is not None:
			return cached
		td = self.table.get(ty)
		if td.kind is TypeKind.SCALAR:
			sem = Semantics.COPY
		elif td.kind is TypeKind.REF:
			sem = Semantics.MOVE if td.ref_mut else Semantics.COPY
		elif td.kind in _AGGREGATES:
			sem = Semantics.COPY
			for part in td.param_types:
				if self.classify(part) is Semantics.MOVE:
					sem = Semantics.MOVE
					break
		else:
			sem = Semantics.MOVE
		self._cache[ty] = sem
		return sem

	def is_copy(self, ty: Optional[TypeId]) -> bool:
		return self.classify(ty) is Semantics.COPY

	def category(self, ty: Optional[TypeId]) -> TypeCategory:
		if self.classify(ty) is Semantics.MOVE:
			return TypeCategory.COMPOUND_OWNED
		td = self.table.get(ty)  # type: ignore[arg-type]
		if td.kind in _AGGREGATES:
			return TypeCategory.COMPOUND_COPY
		return TypeCategory.SCALAR_COPY


def classify(table: TypeTable, ty: Optional[TypeId]) -> Semantics:
	"""Convenience one-shot classification."""
	return TypeClassifier(table).classify(ty)


__all__ = [
	"TypeId",
	"TypeKind",
	"TypeDef",
	"TypeTable",
	"Semantics",
	"TypeCategory",
	"TypeClassifier",
	"classify",
]
