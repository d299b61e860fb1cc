"""
Per-Reference Claim Bookkeeping.

Each reference element moves through:

    UNCLAIMED --claim--> CLAIMED(idx) --reassign--> CLAIMED(idx')
        |                    |
        +--mark_conflicted---+--> CONFLICTED   (terminal)

The candidate index of a CLAIMED key points into the candidate pair list of
the current matching pass.
"""

from __future__ import annotations
from enum import Enum
from typing import Iterator
import numpy as np


class ClaimState(Enum):
    """State of one reference element during a matching pass."""
    UNCLAIMED = "UNCLAIMED"
    CLAIMED = "CLAIMED"
    CONFLICTED = "CONFLICTED"


# Integer codes of the flat int representation (see LookupTable.as_codes())
UNCLAIMED_CODE = -1
CONFLICTED_CODE = -2


class LookupTable:
    """
    Claim state per reference key, sized to the reference map.

    Raises:
        ValueError: On a transition the state machine does not allow
            (claiming a non-UNCLAIMED key, reassigning a non-CLAIMED key,
            negative candidate index)
    """

    def __init__(self, size: int):
        self._states = [ClaimState.UNCLAIMED] * size
        self._indices = [UNCLAIMED_CODE] * size

    def __len__(self) -> int:
        return len(self._states)

    def state(self, key: int) -> ClaimState:
        return self._states[key]

    def candidate_index(self, key: int) -> int:
        """Candidate index of a CLAIMED key."""
        if self._states[key] is not ClaimState.CLAIMED:
            raise ValueError(f"Key {key} is {self._states[key].value}, not CLAIMED")
        return self._indices[key]

    def claim(self, key: int, candidate_index: int) -> None:
        if self._states[key] is not ClaimState.UNCLAIMED:
            raise ValueError(f"Key {key} is {self._states[key].value}, cannot claim")
        self._set_claimed(key, candidate_index)

    def reassign(self, key: int, candidate_index: int) -> None:
        if self._states[key] is not ClaimState.CLAIMED:
            raise ValueError(f"Key {key} is {self._states[key].value}, cannot reassign")
        self._set_claimed(key, candidate_index)

    def mark_conflicted(self, key: int) -> None:
        self._states[key] = ClaimState.CONFLICTED
        self._indices[key] = CONFLICTED_CODE

    def claimed(self) -> Iterator[tuple[int, int]]:
        """Yield (key, candidate_index) of CLAIMED keys in ascending key order."""
        for key, state in enumerate(self._states):
            if state is ClaimState.CLAIMED:
                yield key, self._indices[key]

    def keys_in(self, state: ClaimState) -> list[int]:
        return [key for key, s in enumerate(self._states) if s is state]

    def as_codes(self) -> np.ndarray:
        """Flat int view: -1 unclaimed, -2 conflicted, >= 0 candidate index."""
        return np.array(self._indices, dtype=int)

    def _set_claimed(self, key: int, candidate_index: int) -> None:
        if candidate_index < 0:
            raise ValueError(f"Candidate index must be >= 0, got {candidate_index}")
        self._states[key] = ClaimState.CLAIMED
        self._indices[key] = candidate_index
