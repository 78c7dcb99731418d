# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""Ownership state shapes and the join operator."""

import pytest

from borrowck.core.diagnostics import InternalInvariantViolation
from borrowck.state import (
	BORROWED_EXCLUSIVE,
	LIVE_OWNED,
	MOVED_OUT,
	UNINIT,
	OwnershipState,
	StateKind,
	borrowed_shared,
	merge_ownership_state,
)


def test_join_is_least_permissive():
	assert merge_ownership_state(LIVE_OWNED, LIVE_OWNED) == LIVE_OWNED
	assert merge_ownership_state(LIVE_OWNED, MOVED_OUT) == MOVED_OUT
	assert merge_ownership_state(UNINIT, LIVE_OWNED) == UNINIT
	assert merge_ownership_state(UNINIT, MOVED_OUT) == MOVED_OUT
	assert merge_ownership_state(borrowed_shared(2), borrowed_shared(2)) == borrowed_shared(2)


def test_join_of_disagreeing_borrow_states_is_internal():
	with pytest.raises(InternalInvariantViolation):
		merge_ownership_state(borrowed_shared(1), LIVE_OWNED)
	with pytest.raises(InternalInvariantViolation):
		merge_ownership_state(BORROWED_EXCLUSIVE, borrowed_shared(1))


def test_shared_count_must_be_positive():
	with pytest.raises(InternalInvariantViolation):
		OwnershipState(StateKind.BORROWED_SHARED, 0)
	with pytest.raises(InternalInvariantViolation):
		OwnershipState(StateKind.LIVE_OWNED, 2)


def test_readable_and_borrowed():
	assert LIVE_OWNED.readable and not LIVE_OWNED.borrowed
	assert borrowed_shared(1).readable and borrowed_shared(1).borrowed
	assert not BORROWED_EXCLUSIVE.readable and BORROWED_EXCLUSIVE.borrowed
	assert not MOVED_OUT.readable
	assert borrowed_shared(3).describe() == "shared-borrowed(3)"
