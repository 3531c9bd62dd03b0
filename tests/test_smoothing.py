import math

import pytest

from HLT_tool.metrics.smoothing import decay_constants, smooth


def test_decay_constants_are_powers_of_base():
    d1, d5, d15 = decay_constants(5)
    d = 1 - math.exp(-5 / 60)
    assert d1 == pytest.approx(d)
    assert d5 == pytest.approx(d ** 5)
    assert d15 == pytest.approx(d ** 15)
    assert 0 < d15 < d5 < d1 < 1


def test_first_use_defaults_every_slot_to_value():
    state = smooth(30, None, decay_constants(5))
    assert state[0] == 30
    assert state[1:] == pytest.approx([30, 30, 30])


def test_update_blends_new_value_with_previous_state():
    decays = decay_constants(5)
    prev = [10.0, 10.0, 20.0, 40.0]
    state = smooth(0, prev, decays)
    assert state[0] == 0
    for i, decay in enumerate(decays, start=1):
        assert state[i] == pytest.approx((1 - decay) * prev[i])
    assert prev == [10.0, 10.0, 20.0, 40.0]


def test_partial_state_fills_missing_slots_with_value():
    state = smooth(8, [1.0, 2.0], decay_constants(5))
    assert len(state) == 4
    assert state[2:] == pytest.approx([8, 8])


def test_constant_input_converges_on_every_horizon():
    decays = decay_constants(300)
    state = [0.0, 0.0, 0.0, 0.0]
    for _ in range(300):
        state = smooth(7.0, state, decays)
    assert state == pytest.approx([7.0, 7.0, 7.0, 7.0], rel=1e-9)


def test_constant_input_stays_exact_at_default_period():
    decays = decay_constants(5)
    assert decays[2] < 1e-15
    state = None
    for _ in range(1000):
        state = smooth(0.3, state, decays)
    assert state == [0.3, 0.3, 0.3, 0.3]


def test_tiny_horizon_still_moves_toward_new_value():
    decays = decay_constants(5)
    state = smooth(100.0, [0.0, 0.0, 0.0, 0.0], decays)
    assert 0.0 < state[3] <= 100.0
    assert state[3] == pytest.approx(decays[2] * 100.0)
