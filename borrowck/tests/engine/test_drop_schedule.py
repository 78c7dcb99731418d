# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""Drop ordering and the external release hook."""

import pytest

from borrowck import InternalInvariantViolation, TypeTable, Verifier, verify
from borrowck.drops import OVERWRITE, SCOPE_EXIT, TEMPORARY
from borrowck.graph import Assign, Clone, Declare, ScopeEnter, ScopeExit
from borrowck.test_support import graph


def test_scope_exit_drops_in_reverse_declaration_order():
	types = TypeTable()
	s = types.ensure_string()
	seen = []
	verifier = Verifier(types, on_drop=seen.append)
	result = verifier.verify(graph(Declare("a", s), Declare("b", s), Declare("c", s)))
	assert result.accepted
	assert result.drop_order() == ("c", "b", "a")
	assert [ev.binding for ev in seen] == ["c", "b", "a"]
	assert {ev.reason for ev in seen} == {SCOPE_EXIT}
	assert seen[0].type_name == "String"


def test_inner_scope_drops_before_outer():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(
			Declare("outer", s),
			ScopeEnter(),
			Declare("inner", s),
			ScopeExit(),
			Declare("last", s),
		),
		types,
	)
	assert result.drop_order() == ("inner", "last", "outer")


def test_copy_values_are_never_dropped():
	types = TypeTable()
	i = types.ensure_int()
	s = types.ensure_string()
	result = verify(graph(Declare("n", i), Declare("s", s), Declare("m", i)), types)
	assert result.drop_order() == ("s",)


def test_moved_out_values_are_not_dropped_twice():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(graph(Declare("a", s), ScopeEnter(), Assign("b", "a"), ScopeExit()), types)
	# b lives in the inner scope and owns the value; a is moved out.
	assert result.drop_order() == ("b",)


def test_overwrite_drops_the_old_value_first():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(graph(Declare("a", s), Assign("a", None)), types)
	assert [(ev.binding, ev.reason) for ev in result.drops] == [("a", OVERWRITE), ("a", SCOPE_EXIT)]


def test_temporary_clone_is_dropped_immediately():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(graph(Declare("a", s), Clone("a")), types)
	assert [(ev.binding, ev.reason) for ev in result.drops] == [("a", TEMPORARY), ("a", SCOPE_EXIT)]


def test_hook_not_called_when_pass_aborts():
	types = TypeTable()
	s = types.ensure_string()
	seen = []
	bad = graph(ScopeEnter(), Declare("a", s), ScopeExit(), ScopeExit())
	with pytest.raises(InternalInvariantViolation) as exc:
		verify(bad, types, on_drop=seen.append)
	assert "without a matching ScopeEnter" in str(exc.value)
	assert seen == []


def test_hook_errors_propagate():
	types = TypeTable()
	s = types.ensure_string()

	def boom(event):
		raise RuntimeError(f"cannot release {event.binding}")

	with pytest.raises(RuntimeError, match="cannot release a"):
		verify(graph(Declare("a", s)), types, on_drop=boom)


def test_unclosed_explicit_scope_is_internal():
	types = TypeTable()
	with pytest.raises(InternalInvariantViolation, match="never closed"):
		verify(graph(ScopeEnter(), Declare("a", types.ensure_string())), types)
