# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""Copy/Move classification and type table interning."""

import pytest

from borrowck.core.types_core import Semantics, TypeCategory, TypeClassifier, TypeTable, classify


def _table():
	table = TypeTable()
	return table, TypeClassifier(table)


def test_scalars_are_copy():
	table, cls = _table()
	for ty in (table.ensure_int(), table.ensure_uint(), table.ensure_float(), table.ensure_bool(), table.ensure_char()):
		assert cls.classify(ty) is Semantics.COPY
		assert cls.category(ty) is TypeCategory.SCALAR_COPY


def test_owned_types_move():
	table, cls = _table()
	assert cls.classify(table.ensure_string()) is Semantics.MOVE
	assert cls.classify(table.new_vec(table.ensure_int())) is Semantics.MOVE
	assert cls.classify(table.new_box(table.ensure_bool())) is Semantics.MOVE
	assert cls.category(table.ensure_string()) is TypeCategory.COMPOUND_OWNED


def test_aggregate_is_copy_only_when_every_part_is():
	table, cls = _table()
	i = table.ensure_int()
	s = table.ensure_string()

	pair = table.new_tuple([i, table.ensure_bool()])
	assert cls.classify(pair) is Semantics.COPY
	assert cls.category(pair) is TypeCategory.COMPOUND_COPY

	assert cls.classify(table.new_tuple([i, s])) is Semantics.MOVE
	assert cls.classify(table.new_array(i, 4)) is Semantics.COPY
	assert cls.classify(table.new_array(s, 4)) is Semantics.MOVE

	point = table.new_struct("Point", [("x", i), ("y", i)])
	named = table.new_struct("Named", [("id", i), ("name", s)])
	assert cls.classify(point) is Semantics.COPY
	assert cls.classify(named) is Semantics.MOVE
	# Nesting propagates: an array of a Move struct moves.
	assert cls.classify(table.new_array(named, 2)) is Semantics.MOVE


def test_references():
	table, cls = _table()
	s = table.ensure_string()
	assert cls.classify(table.new_ref(s, is_mut=False)) is Semantics.COPY
	assert cls.classify(table.new_ref(s, is_mut=True)) is Semantics.MOVE


def test_unknown_and_missing_types_are_conservatively_move():
	table, cls = _table()
	assert cls.classify(table.ensure_unknown()) is Semantics.MOVE
	assert cls.classify(None) is Semantics.MOVE
	assert cls.classify(12345) is Semantics.MOVE


def test_one_shot_classify_matches_classifier():
	table = TypeTable()
	assert classify(table, table.ensure_int()) is Semantics.COPY
	assert classify(table, table.ensure_string()) is Semantics.MOVE


def test_structural_types_are_interned():
	table = TypeTable()
	i = table.ensure_int()
	assert table.new_tuple([i, i]) == table.new_tuple([i, i])
	assert table.new_array(i, 3) != table.new_array(i, 4)
	assert table.new_vec(i) == table.new_vec(i)
	assert table.ensure_int() == i
	assert table.lookup("Int") == i


def test_struct_redefinition_and_duplicate_fields_rejected():
	table = TypeTable()
	i = table.ensure_int()
	table.new_struct("P", [("a", i)])
	with pytest.raises(ValueError):
		table.new_struct("P", [("a", i)])
	with pytest.raises(ValueError):
		table.new_struct("Q", [("a", i), ("a", i)])


def test_display():
	table = TypeTable()
	i = table.ensure_int()
	s = table.ensure_string()
	assert table.display(table.new_array(i, 3)) == "[Int; 3]"
	assert table.display(table.new_tuple([i, s])) == "(Int, String)"
	assert table.display(table.new_ref(s, is_mut=True)) == "&mut String"
	assert table.display(table.new_vec(s)) == "Vec[String]"
