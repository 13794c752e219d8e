# omaha_nuts/nuts.py
"""
Точный подсчёт "натсов" для Омахи.
Рука = ровно 3 карты борда + ровно 2 карты из 4 карманных.
"""
import logging
import math
from collections import Counter
from typing import NamedTuple, Sequence

from card import FULL_DECK, FULL_DECK_CARDS, cards_to_str
from combinatorics import combinations
from evaluator import Evaluator5Card, InvalidHandError, evaluator_5card_instance

logger = logging.getLogger(__name__)

HOLE_SIZE = 4
BOARD_SIZE_TO_STREET = {3: 'flop', 4: 'turn', 5: 'river'}


class DuplicateCardError(InvalidHandError):
    """Одна и та же карта встречается в борде, руке или сбросе дважды."""


class NutsResult(NamedTuple):
    scenarios: int
    nuts: int

    @property
    def percentage(self) -> float:
        # Округление половины вверх, как Math.round
        return math.floor(10000 * self.nuts / self.scenarios + 0.5) / 100


def validate_cards(community: Sequence[int], hole: Sequence[int], discard: Sequence[int] = (), board_size: int = None):
    if board_size is not None and len(community) != board_size:
        raise InvalidHandError(f"Expected {board_size} community cards, got {len(community)}")
    if len(hole) != HOLE_SIZE:
        raise InvalidHandError(f"Omaha hole hand requires {HOLE_SIZE} cards, got {len(hole)}")
    all_cards = [*community, *hole, *discard]
    unknown = [c for c in all_cards if c not in FULL_DECK_CARDS]
    if unknown:
        raise InvalidHandError(f"Unknown card values: {unknown}")
    duplicates = [c for c, count in Counter(all_cards).items() if count > 1]
    if duplicates:
        raise DuplicateCardError(f"Duplicate cards: {cards_to_str(duplicates)}")


def best_score(community: Sequence[int], hole: Sequence[int], evaluator: Evaluator5Card = None) -> int:
    """Лучший (минимальный) ранг из всех комбинаций 3 карт борда x 2 карманных."""
    if len(community) < 3 or len(hole) < 2:
        raise InvalidHandError("Need at least 3 community and 2 hole cards")
    evaluator = evaluator or evaluator_5card_instance
    rank5 = evaluator.evaluate_five

    best = evaluator.table.MAX_HIGH_CARD + 1
    hole_pairs = tuple(combinations(hole, 2))
    for a, b, c in combinations(community, 3):
        for d, e in hole_pairs:
            score = rank5(a, b, c, d, e)
            if score < best:
                best = score
    return best


def exists_better_hand(community: Sequence[int], excluded: Sequence[int], score: int, evaluator: Evaluator5Card = None) -> bool:
    """
    Есть ли среди невидимых карт пара, которая с 3 картами борда бьёт score.
    Ничья не считается: сравнение строгое. Выход на первой найденной руке.
    """
    rank5 = (evaluator or evaluator_5card_instance).evaluate_five

    blocked = set(community)
    blocked.update(excluded)
    candidate_pairs = tuple(combinations([c for c in FULL_DECK if c not in blocked], 2))

    for a, b, c in combinations(community, 3):
        for d, e in candidate_pairs:
            if rank5(a, b, c, d, e) < score:
                return True
    return False


def _count_nuts(community: Sequence[int], hole: Sequence[int], discard: Sequence[int], cards_to_come: int, evaluator: Evaluator5Card) -> NutsResult:
    hidden_burnt = (*hole, *discard)
    blocked = set(community)
    blocked.update(hidden_burnt)
    outs = [c for c in FULL_DECK if c not in blocked]
    if len(outs) < cards_to_come:
        raise InvalidHandError(f"Need {cards_to_come} undealt cards to complete the board, only {len(outs)} left")

    scenarios = 0
    nuts = 0
    # cards_to_come == 0 даёт ровно один пустой вариант - ривер
    for runout in combinations(outs, cards_to_come):
        scenarios += 1
        board = (*community, *runout)
        score = best_score(board, hole, evaluator)
        if not exists_better_hand(board, hidden_burnt, score, evaluator):
            nuts += 1

    result = NutsResult(scenarios, nuts)
    logger.debug("%s hole=%s board=%s discard=%d -> %s", BOARD_SIZE_TO_STREET[len(community)],
                 cards_to_str(hole), cards_to_str(community), len(discard), result)
    return result


def nuts_at_river(community: Sequence[int], hole: Sequence[int], discard: Sequence[int] = (), evaluator: Evaluator5Card = None) -> NutsResult:
    validate_cards(community, hole, discard, board_size=5)
    return _count_nuts(community, hole, discard, 0, evaluator)


def nuts_at_turn(community: Sequence[int], hole: Sequence[int], discard: Sequence[int] = (), evaluator: Evaluator5Card = None) -> NutsResult:
    validate_cards(community, hole, discard, board_size=4)
    return _count_nuts(community, hole, discard, 1, evaluator)


def nuts_at_flop(community: Sequence[int], hole: Sequence[int], discard: Sequence[int] = (), evaluator: Evaluator5Card = None) -> NutsResult:
    validate_cards(community, hole, discard, board_size=3)
    return _count_nuts(community, hole, discard, 2, evaluator)


STREET_FUNCTIONS = {'flop': nuts_at_flop, 'turn': nuts_at_turn, 'river': nuts_at_river}


def nuts_for_board(community: Sequence[int], hole: Sequence[int], discard: Sequence[int] = (), evaluator: Evaluator5Card = None) -> NutsResult:
    street = BOARD_SIZE_TO_STREET.get(len(community))
    if street is None:
        raise InvalidHandError(f"Board must have 3, 4 or 5 cards, got {len(community)}")
    return STREET_FUNCTIONS[street](community, hole, discard, evaluator)
