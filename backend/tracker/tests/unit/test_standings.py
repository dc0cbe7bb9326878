"""
Placement ranking, per-profile result building and the biggest-win lookup
shown on the final scoreboard.
"""

from datetime import UTC, datetime

from tracker.logic.enums import WinType
from tracker.logic.standings import biggest_win, build_game_results, rank_players
from tracker.logic.state_utils import add_deltas
from tracker.tests.helpers.builders import create_entry, create_manual_entry, create_test_session


class TestRankPlayers:
    def test_highest_points_first(self):
        session = add_deltas(create_test_session(), [-300, 500, 100, -300])
        standings = rank_players(session.players)

        assert [s.name for s in standings] == ["Bo", "Cid", "Amy", "Dee"]
        assert [s.placement for s in standings] == [1, 2, 3, 4]
        assert [s.seat for s in standings] == [1, 2, 0, 3]

    def test_ties_keep_seat_order(self):
        session = add_deltas(create_test_session(), [0, 200, 0, 200])
        standings = rank_players(session.players)

        assert [s.seat for s in standings] == [1, 3, 0, 2]
        assert [s.placement for s in standings] == [1, 2, 3, 4]

    def test_all_equal(self):
        standings = rank_players(create_test_session().players)
        assert [s.seat for s in standings] == [0, 1, 2, 3]

    def test_negative_balances_rank_last(self):
        session = add_deltas(create_test_session(starting_points=0), [-50, 10, 40, 0])
        assert rank_players(session.players)[-1].name == "Amy"


class TestBuildGameResults:
    def test_only_linked_seats_in_placement_order(self):
        session = add_deltas(create_test_session(profile_ids=["pa", None, "pc", None]), [-100, 0, 100, 0])
        played_at = datetime(2025, 6, 1, tzinfo=UTC)
        results = build_game_results(session, played_at=played_at)

        assert [profile for profile, _ in results] == ["pc", "pa"]
        first, last = results[0][1], results[1][1]
        assert (first.placement, first.final_points) == (1, 10100)
        assert (last.placement, last.final_points) == (4, 9900)
        assert first.session_id == session.session_id
        assert first.date_played == played_at

    def test_no_profiles_no_results(self):
        assert build_game_results(create_test_session()) == []

    def test_result_ids_unique(self):
        session = create_test_session(profile_ids=["a", "b", "c", "d"])
        results = build_game_results(session)
        assert len({result.result_id for _, result in results}) == 4


class TestBiggestWin:
    def test_largest_delta(self):
        small = create_entry(deltas=(24, -8, -8, -8))
        big = create_entry(deltas=(0, 96, 0, -96), win_type=WinType.DEAL_IN, winner_seat=1, discarder_seat=3)
        assert biggest_win([small, big]) == big

    def test_manual_entries_ignored(self):
        manual = create_manual_entry((5000, 0, 0, 0))
        hand = create_entry(deltas=(24, -8, -8, -8))
        assert biggest_win([manual, hand]) == hand

    def test_earliest_wins_ties(self):
        first = create_entry(deltas=(24, -8, -8, -8), summary="first")
        second = create_entry(deltas=(-8, 24, -8, -8), winner_seat=1, summary="second")
        assert biggest_win([first, second]).summary == "first"

    def test_empty_history(self):
        assert biggest_win([]) is None
        assert biggest_win([create_manual_entry((0, 0, -100, 0))]) is None
