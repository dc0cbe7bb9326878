"""
Fan table lookup, tsumo and deal-in delta vectors, preview lines and the
summary strings stored in history.
"""

import pytest

from tracker.logic.enums import WinType
from tracker.logic.exceptions import InvalidSeatError, SeatCollisionError
from tracker.logic.scoring import (
    FAN_POINTS,
    LIMIT_FAN,
    LIMIT_POINTS,
    deal_in_deltas,
    effective_fan,
    fan_label,
    manual_summary,
    meets_min_fan,
    points,
    preview_lines,
    resolve_discarder,
    summary_string,
    tsumo_deltas,
)
from tracker.tests.helpers.builders import create_test_session


class TestFanPointsTable:
    def test_table_is_exact(self):
        assert FAN_POINTS == (1, 2, 4, 8, 16, 24, 32, 48, 64, 96, 128, 192, 256, 384)
        assert LIMIT_FAN == 13
        assert LIMIT_POINTS == 384

    @pytest.mark.parametrize("fan", range(13))
    def test_points_below_limit_read_table(self, fan):
        assert points(fan) == FAN_POINTS[fan]

    @pytest.mark.parametrize("fan", [13, 14, 20, 100])
    def test_limit_and_above_cap_at_384(self, fan):
        assert points(fan) == 384

    @pytest.mark.parametrize("fan", [-1, -5])
    def test_negative_fan_clamps_to_zero_fan_value(self, fan):
        assert points(fan) == 1


class TestTsumoDeltas:
    def test_example_three_fan_seat_one(self):
        assert tsumo_deltas(3, 1, 1) == [-8, 24, -8, -8]

    @pytest.mark.parametrize("winner", range(4))
    @pytest.mark.parametrize(("fan", "multiplier"), [(0, 1), (5, 2), (13, 3), (8, 10)])
    def test_zero_sum_and_payments(self, fan, multiplier, winner):
        deltas = tsumo_deltas(fan, multiplier, winner)
        payment = points(fan) * multiplier

        assert sum(deltas) == 0
        assert deltas[winner] == 3 * payment
        assert all(d == -payment for seat, d in enumerate(deltas) if seat != winner)

    def test_rejects_out_of_range_winner(self):
        with pytest.raises(InvalidSeatError):
            tsumo_deltas(3, 1, 4)

    def test_rejects_zero_multiplier(self):
        with pytest.raises(ValueError, match="Multiplier"):
            tsumo_deltas(3, 0, 0)


class TestDealInDeltas:
    def test_example_five_fan_double_multiplier(self):
        assert deal_in_deltas(5, 2, 0, 2) == [96, 0, -96, 0]

    @pytest.mark.parametrize(("winner", "discarder"), [(0, 1), (1, 3), (2, 0), (3, 2)])
    def test_only_discarder_pays(self, winner, discarder):
        deltas = deal_in_deltas(7, 1, winner, discarder)
        payment = points(7) * 2

        assert sum(deltas) == 0
        assert deltas[winner] == payment
        assert deltas[discarder] == -payment
        assert [d for seat, d in enumerate(deltas) if seat not in (winner, discarder)] == [0, 0]

    def test_deal_in_total_matches_tsumo_loser_rate_doubled(self):
        assert deal_in_deltas(4, 1, 0, 1)[0] == 2 * -tsumo_deltas(4, 1, 0)[1]

    def test_collision_fails_fast(self):
        with pytest.raises(SeatCollisionError):
            deal_in_deltas(3, 1, 2, 2)

    def test_rejects_out_of_range_discarder(self):
        with pytest.raises(InvalidSeatError, match="discarder"):
            deal_in_deltas(3, 1, 0, -1)


class TestPreviewLines:
    def test_tsumo_pairs_names_in_seat_order(self):
        session = create_test_session()
        lines = preview_lines(3, 1, WinType.TSUMO, 1, None, session.players)
        assert lines == [("Amy", -8), ("Bo", 24), ("Cid", -8), ("Dee", -8)]

    def test_deal_in_pairs_names(self):
        session = create_test_session()
        lines = preview_lines(5, 2, WinType.DEAL_IN, 0, 2, session.players)
        assert lines == [("Amy", 96), ("Bo", 0), ("Cid", -96), ("Dee", 0)]

    def test_deal_in_without_discarder_is_empty(self):
        session = create_test_session()
        assert preview_lines(5, 1, WinType.DEAL_IN, 0, None, session.players) == []

    def test_manual_is_empty(self):
        session = create_test_session()
        assert preview_lines(5, 1, WinType.MANUAL, 0, None, session.players) == []


class TestSummaryString:
    def test_tsumo(self):
        assert summary_string("Amy", WinType.TSUMO, 3, None, 24) == "Amy tsumo 3 fan (+24)"

    def test_deal_in_limit(self):
        assert summary_string("Bo", WinType.DEAL_IN, 13, "Cid", 384) == "Bo wins Limit off Cid (+384)"

    def test_deal_in_without_discarder_name(self):
        assert summary_string("Bo", WinType.DEAL_IN, 4, None, 32) == "Bo wins 4 fan (+32)"

    def test_negative_delta_keeps_native_minus(self):
        assert summary_string("Amy", WinType.TSUMO, 0, None, -3) == "Amy tsumo 0 fan (-3)"

    def test_zero_delta_gets_plus(self):
        assert summary_string("Amy", WinType.TSUMO, 0, None, 0) == "Amy tsumo 0 fan (+0)"

    def test_manual_is_literal(self):
        assert summary_string("Amy", WinType.MANUAL, 0, None, 500) == "Manual adjustment"

    def test_fan_label_above_limit(self):
        assert fan_label(20) == "Limit"
        assert fan_label(12) == "12 fan"


class TestManualSummary:
    def test_with_reason(self):
        assert manual_summary("Cid", -500, "chombo") == "Cid: -500 (chombo)"

    def test_without_reason(self):
        assert manual_summary("Cid", 200) == "Cid: +200 (Manual adjustment)"


class TestCallerRules:
    def test_limit_flag_overrides_fan(self):
        assert effective_fan(2, is_limit_hand=True) == 13
        assert effective_fan(2) == 2

    @pytest.mark.parametrize(("fan", "min_fan", "expected"), [(0, 0, True), (2, 3, False), (3, 3, True), (13, 5, True)])
    def test_min_fan_gate(self, fan, min_fan, expected):
        assert meets_min_fan(fan, min_fan) is expected

    def test_resolve_discarder_collision_uses_next_seat(self):
        assert resolve_discarder(1, 1) == 2
        assert resolve_discarder(3, 3) == 0

    def test_resolve_discarder_keeps_distinct_seat(self):
        assert resolve_discarder(1, 3) == 3
