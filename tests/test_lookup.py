"""
Tests for LookupTable / ClaimState transitions.

State machine:
    UNCLAIMED -> CLAIMED (claim)
    CLAIMED   -> CLAIMED (reassign)
    any       -> CONFLICTED (mark_conflicted), terminal
"""

import numpy as np
import pytest

from featurematch.matching.lookup import ClaimState, LookupTable


def test_initial_state():
    table = LookupTable(3)

    assert len(table) == 3
    assert all(table.state(k) is ClaimState.UNCLAIMED for k in range(3))
    assert list(table.claimed()) == []
    assert np.array_equal(table.as_codes(), [-1, -1, -1])


def test_claim_and_reassign():
    table = LookupTable(2)

    table.claim(1, 0)
    assert table.state(1) is ClaimState.CLAIMED
    assert table.candidate_index(1) == 0

    table.reassign(1, 4)
    assert table.candidate_index(1) == 4
    assert list(table.claimed()) == [(1, 4)]
    assert np.array_equal(table.as_codes(), [-1, 4])


def test_claim_twice_raises():
    table = LookupTable(1)
    table.claim(0, 0)
    with pytest.raises(ValueError):
        table.claim(0, 1)


def test_reassign_unclaimed_raises():
    with pytest.raises(ValueError):
        LookupTable(1).reassign(0, 0)


def test_negative_candidate_index_raises():
    with pytest.raises(ValueError):
        LookupTable(1).claim(0, -1)


def test_conflicted_is_terminal():
    """Once CONFLICTED, neither claim nor reassign can bring a key back."""
    table = LookupTable(2)
    table.claim(0, 0)
    table.mark_conflicted(0)

    assert table.state(0) is ClaimState.CONFLICTED
    with pytest.raises(ValueError):
        table.claim(0, 3)
    with pytest.raises(ValueError):
        table.reassign(0, 3)
    with pytest.raises(ValueError):
        table.candidate_index(0)

    table.mark_conflicted(0)
    assert table.state(0) is ClaimState.CONFLICTED
    assert np.array_equal(table.as_codes(), [-2, -1])


def test_keys_in_state():
    table = LookupTable(4)
    table.claim(0, 0)
    table.claim(2, 1)
    table.mark_conflicted(2)

    assert table.keys_in(ClaimState.CLAIMED) == [0]
    assert table.keys_in(ClaimState.CONFLICTED) == [2]
    assert table.keys_in(ClaimState.UNCLAIMED) == [1, 3]
