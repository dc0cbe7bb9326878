import random

from tracker.logic.rng import choose_dealer, seat_permutation


class TestSeatPermutation:
    def test_is_permutation(self):
        for seed in range(20):
            assert sorted(seat_permutation(random.Random(seed))) == [0, 1, 2, 3]

    def test_seeded_rng_is_deterministic(self):
        assert seat_permutation(random.Random(42)) == seat_permutation(random.Random(42))

    def test_all_orders_reachable(self):
        rng = random.Random(7)
        seen = {seat_permutation(rng) for _ in range(2000)}
        assert len(seen) == 24

    def test_system_random_default(self):
        assert sorted(seat_permutation()) == [0, 1, 2, 3]


class TestChooseDealer:
    def test_in_range(self):
        rng = random.Random(3)
        assert {choose_dealer(rng) for _ in range(200)} == {0, 1, 2, 3}

    def test_system_random_default(self):
        assert 0 <= choose_dealer() < 4
