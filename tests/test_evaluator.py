import itertools
import random
from collections import Counter

import numpy as np
import pytest

from card import Card, FULL_DECK, parse_cards
from evaluator import (Evaluator5Card, ImpossibleHandError, InvalidHandError, LookupTable5Card,
                       evaluate, evaluator_5card_instance, get_hand_rank)


def hand(cards_str: str):
    return parse_cards(cards_str.replace(' ', ','))


def reference_rank(cards):
    """Медленная оценка через категорию и кикеры; больше = сильнее."""
    ranks = sorted((Card.get_rank_int(c) for c in cards), reverse=True)
    is_flush = len({Card.get_suit_int(c) for c in cards}) == 1
    uniq = sorted(set(ranks), reverse=True)
    straight_high = None
    if len(uniq) == 5:
        if uniq[0] - uniq[4] == 4:
            straight_high = uniq[0]
        elif uniq == [12, 3, 2, 1, 0]:
            straight_high = 3
    by_count = sorted(Counter(ranks).items(), key=lambda x: (x[1], x[0]), reverse=True)
    counts = [n for _, n in by_count]
    ordered = tuple(r for r, _ in by_count)

    if is_flush and straight_high is not None: return (8, (straight_high,))
    if counts[0] == 4: return (7, ordered)
    if counts[:2] == [3, 2]: return (6, ordered)
    if is_flush: return (5, tuple(ranks))
    if straight_high is not None: return (4, (straight_high,))
    if counts[0] == 3: return (3, ordered)
    if counts[:2] == [2, 2]: return (2, ordered)
    if counts[0] == 2: return (1, ordered)
    return (0, tuple(ranks))


class TestHandRanks:
    """Границы категорий 1..7462."""

    @pytest.mark.parametrize("cards_str,expected", [
        ("As Ks Qs Js Ts", 1),
        ("5d 4d 3d 2d Ad", 10),
        ("As Ah Ad Ac Kh", 11),
        ("2s 2h 2d 2c 3h", 166),
        ("As Ah Ad Kc Kh", 167),
        ("2s 2h 2d 3c 3h", 322),
        ("Ah Kh Qh Jh 9h", 323),
        ("7c 5c 4c 3c 2c", 1599),
        ("Ah Kd Qc Js Th", 1600),
        ("5h 4d 3c 2s Ah", 1609),
        ("As Ah Ad Kc Qh", 1610),
        ("2s 2h 2d 4c 3h", 2467),
        ("As Ah Kd Kc Qh", 2468),
        ("3s 3h 2d 2c 4h", 3325),
        ("As Ah Kd Qc Jh", 3326),
        ("2s 2h 5d 4c 3h", 6185),
        ("Ah Kd Qc Js 9h", 6186),
        ("7h 5d 4c 3s 2h", 7462),
    ])
    def test_category_boundaries(self, cards_str, expected):
        assert evaluate(hand(cards_str)) == expected

    def test_get_hand_rank_describes_class(self):
        assert get_hand_rank(hand("As Ah Ad Kc Kh")) == (167, 3, "Full House")
        assert get_hand_rank(hand("7h 5d 4c 3s 2h")) == (7462, 9, "High Card")

    def test_rank_class_rejects_out_of_range(self):
        with pytest.raises(InvalidHandError):
            evaluator_5card_instance.get_rank_class(0)
        with pytest.raises(InvalidHandError):
            evaluator_5card_instance.get_rank_class(7463)

    def test_tables_cover_every_rank_once(self):
        table = evaluator_5card_instance.table
        flush_ranks = table.flushes[table.flushes > 0]
        unique_ranks = table.unique5[table.unique5 > 0]
        all_ranks = np.concatenate([flush_ranks, unique_ranks, table.values]).astype(np.int64)
        assert len(all_ranks) == 7462
        assert np.array_equal(np.sort(all_ranks), np.arange(1, 7463))

    def test_unique5_only_for_five_distinct_ranks(self):
        table = evaluator_5card_instance.table
        for mask in np.nonzero(table.unique5)[0]:
            assert bin(int(mask)).count('1') == 5
        assert len(table.products) == 4888


class TestEvaluatorProperties:
    def test_permutation_invariance(self):
        for cards_str in ["As Ks Qs Js Ts", "9c 9d 4h 4s Kd", "Jh Jd Jc 2s 7d", "8s 6d 4c 3h 2s"]:
            cards = hand(cards_str)
            expected = evaluate(cards)
            for perm in itertools.permutations(cards):
                assert evaluate(perm) == expected

    def test_matches_reference_ordering(self):
        rng = random.Random(2024)
        hands = [rng.sample(FULL_DECK, 5) for _ in range(300)]
        scored = [(evaluate(h), reference_rank(h)) for h in hands]
        for (rank_a, ref_a), (rank_b, ref_b) in itertools.combinations(scored, 2):
            assert (rank_a < rank_b) == (ref_a > ref_b)
            assert (rank_a == rank_b) == (ref_a == ref_b)

    def test_evaluate_five_matches_evaluate(self):
        cards = hand("Qd Qh 8s 8c Ac")
        assert evaluator_5card_instance.evaluate_five(*cards) == evaluate(cards)


class TestInvalidHands:
    def test_wrong_card_count(self):
        with pytest.raises(InvalidHandError):
            evaluate(hand("As Ks Qs Js"))
        with pytest.raises(InvalidHandError):
            evaluate(hand("As Ks Qs Js Ts 9s"))

    def test_five_of_a_kind_is_impossible(self):
        with pytest.raises(ImpossibleHandError):
            evaluate(hand("As Ah Ad Ac As"))

    def test_duplicate_suited_card_is_impossible(self):
        with pytest.raises(ImpossibleHandError):
            evaluate(hand("As As Ks Qs Js"))

    def test_impossible_hand_is_invalid_hand(self):
        assert issubclass(ImpossibleHandError, InvalidHandError)
        assert issubclass(InvalidHandError, ValueError)


class TestLookupTableCache:
    def test_save_and_load(self, tmp_path):
        path = str(tmp_path / "tables.pkl")
        evaluator_5card_instance.table.save(path)
        loaded = LookupTable5Card.load(path)
        original = evaluator_5card_instance.table
        assert np.array_equal(loaded.products, original.products)
        assert np.array_equal(loaded.values, original.values)
        assert np.array_equal(loaded.flushes, original.flushes)
        assert np.array_equal(loaded.unique5, original.unique5)

        evaluator = Evaluator5Card(loaded)
        assert evaluator.evaluate(hand("Kh Kd Ks 7c 7d")) == evaluate(hand("Kh Kd Ks 7c 7d"))

    def test_tables_are_read_only(self):
        with pytest.raises(ValueError):
            evaluator_5card_instance.table.flushes[0] = 1

    def test_rejects_truncated_tables(self):
        table = evaluator_5card_instance.table
        with pytest.raises(ValueError):
            LookupTable5Card(table.flushes, table.unique5, table.products[:-1], table.values[:-1])
