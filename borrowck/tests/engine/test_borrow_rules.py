# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""Shared/exclusive borrow discipline."""

import pytest

from borrowck import DiagnosticKind, InternalInvariantViolation, TypeTable, VerifierConfig, verify
from borrowck.graph import Assign, Borrow, BorrowKind, Branch, Declare, Read, ReleaseBorrow, ScopeEnter, ScopeExit
from borrowck.state import BORROWED_EXCLUSIVE, LIVE_OWNED, borrowed_shared
from borrowck.test_support import Harness, block, graph

SHARED = BorrowKind.SHARED
EXCL = BorrowKind.EXCLUSIVE


def test_shared_borrows_coexist_and_block_exclusive():
	h = Harness()
	h.declare("x", h.types.ensure_string())
	assert h.borrows.create_borrow(h.state, "r1", "x", SHARED) is not None
	assert h.borrows.create_borrow(h.state, "r2", "x", SHARED) is not None
	assert h.state_of("x") == borrowed_shared(2)

	assert h.borrows.create_borrow(h.state, "r3", "x", EXCL) is None
	assert h.kinds() == [DiagnosticKind.CONFLICTING_BORROW]
	assert h.diagnostics[0].message == "cannot take exclusive borrow of 'x' while shared borrow active"
	# Both existing borrows are pointed at.
	assert len(h.diagnostics[0].related) == 2

	h.borrows.release_borrow(h.state, "r1")
	assert h.state_of("x") == borrowed_shared(1)
	h.borrows.release_borrow(h.state, "r2")
	assert h.state_of("x") == LIVE_OWNED


def test_exclusive_borrow_is_exclusive_until_released():
	h = Harness()
	h.declare("x", h.types.ensure_string())
	assert h.borrows.create_borrow(h.state, "m", "x", EXCL) is not None
	assert h.state_of("x") == BORROWED_EXCLUSIVE
	assert h.borrows.create_borrow(h.state, "s", "x", SHARED) is None
	assert h.borrows.create_borrow(h.state, "m2", "x", EXCL) is None
	assert not h.store.read(h.state, "x")
	assert h.kinds() == [DiagnosticKind.CONFLICTING_BORROW] * 3

	released = h.borrows.release_borrow(h.state, "m")
	assert released is not None and not released.active
	assert h.state_of("x") == LIVE_OWNED
	assert h.borrows.create_borrow(h.state, "s2", "x", SHARED) is not None


def test_exclusive_then_release_through_verifier():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(
			Declare("x", s),
			Borrow("m", "x", EXCL),
			Read("x"),
			ReleaseBorrow("m"),
			Read("x"),
			Borrow("m", "x", EXCL),
		),
		types,
	)
	(diag,) = result.diagnostics()
	assert diag.kind is DiagnosticKind.CONFLICTING_BORROW
	assert diag.message == "cannot read 'x' while an exclusive borrow is active"


def test_shared_borrow_count_is_capped():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(Declare("x", s), Borrow("a", "x"), Borrow("b", "x"), Borrow("c", "x")),
		types,
		config=VerifierConfig(max_shared_borrows=2),
	)
	(diag,) = result.diagnostics()
	assert diag.kind is DiagnosticKind.CONFLICTING_BORROW
	assert "more than 2 shared borrows" in diag.message


def test_borrow_of_moved_or_uninitialized_value():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(
			Declare("a", s),
			Assign("b", "a"),
			Borrow("r", "a"),
			Declare("u", s, initialized=False),
			Borrow("q", "u", EXCL),
		),
		types,
	)
	assert [d.kind for d in result.diagnostics()] == [
		DiagnosticKind.MOVED_VALUE_USE,
		DiagnosticKind.UNINITIALIZED_USE,
	]


def test_releasing_a_rejected_handle_is_a_no_op():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(Declare("x", s), Borrow("m", "x", EXCL), Borrow("r", "x"), ReleaseBorrow("r"), ReleaseBorrow("m")),
		types,
	)
	assert [d.kind for d in result.diagnostics()] == [DiagnosticKind.CONFLICTING_BORROW]


def test_handle_rejected_inside_an_arm_expires_with_it():
	types = TypeTable()
	s = types.ensure_string()
	body = graph(
		Declare("x", s),
		Borrow("m", "x", EXCL),
		Branch([block(Borrow("r", "x")), block()]),
		ReleaseBorrow("m"),
		ReleaseBorrow("r"),
	)
	with pytest.raises(InternalInvariantViolation, match="'r'"):
		verify(body, types)


def test_handle_rejected_in_an_enclosing_scope_survives_inner_scopes():
	h = Harness()
	s = h.types.ensure_string()
	h.declare("x", s)
	h.borrows.create_borrow(h.state, "m", "x", EXCL)
	assert h.borrows.create_borrow(h.state, "r", "x") is None
	h.scopes.enter(h.state)
	h.scopes.exit(h.state)
	assert "r" in h.state.rejected_refs
	assert h.borrows.release_borrow(h.state, "r") is None


def test_releasing_unknown_handle_is_internal():
	types = TypeTable()
	with pytest.raises(InternalInvariantViolation) as exc:
		verify(graph(Declare("x", types.ensure_string()), ReleaseBorrow("nope")), types)
	assert "nope" in str(exc.value)


def test_reusing_an_active_handle_is_internal():
	types = TypeTable()
	s = types.ensure_string()
	with pytest.raises(InternalInvariantViolation):
		verify(graph(Declare("x", s), Declare("y", s), Borrow("r", "x"), Borrow("r", "y")), types)


def test_borrows_end_with_their_scope():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(
		graph(
			Declare("x", s),
			ScopeEnter(),
			Borrow("m", "x", EXCL),
			ScopeExit(),
			Assign("y", "x"),
		),
		types,
	)
	assert result.accepted
	assert result.drop_order() == ("y",)


def test_writing_into_a_borrowed_binding_is_a_conflict():
	types = TypeTable()
	s = types.ensure_string()
	result = verify(graph(Declare("x", s), Borrow("r", "x"), Assign("x", None)), types)
	(diag,) = result.diagnostics()
	assert diag.kind is DiagnosticKind.CONFLICTING_BORROW
	assert diag.message == "cannot assign to 'x' while it is borrowed"


def test_shared_borrow_allows_reads_and_copies():
	types = TypeTable()
	i = types.ensure_int()
	result = verify(graph(Declare("n", i), Borrow("r", "n"), Read("n"), Assign("m", "n")), types)
	assert result.accepted
