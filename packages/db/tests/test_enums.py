# This project was developed with assistance from AI tools.
"""Tests for domain enums."""

import pytest

from db.enums import ClientSegment, SignatureSessionStatus


def test_terminal_states_have_no_transitions():
    transitions = SignatureSessionStatus.valid_transitions()
    for state in SignatureSessionStatus.terminal_states():
        assert transitions[state] == frozenset()


def test_pending_can_reach_every_terminal_state():
    transitions = SignatureSessionStatus.valid_transitions()
    assert transitions[SignatureSessionStatus.PENDING] == SignatureSessionStatus.terminal_states()


def test_every_status_has_transition_entry():
    assert set(SignatureSessionStatus.valid_transitions()) == set(SignatureSessionStatus)


@pytest.mark.parametrize(
    ("net_worth", "segment"),
    [
        (0, ClientSegment.MASS_MARKET),
        (99_999.99, ClientSegment.MASS_MARKET),
        (100_000, ClientSegment.AFFLUENT),
        (249_999, ClientSegment.AFFLUENT),
        (250_000, ClientSegment.HNW),
        (500_000, ClientSegment.VHNW),
        (999_999, ClientSegment.VHNW),
        (1_000_000, ClientSegment.UHNW),
    ],
)
def test_segment_for_net_worth(net_worth, segment):
    assert ClientSegment.for_net_worth(net_worth) == segment
