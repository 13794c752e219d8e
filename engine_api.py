# omaha_nuts/engine_api.py
import logging
import os
from typing import Dict, Optional, Sequence, Union

from card import Card
from evaluator import Evaluator5Card, LookupTable5Card, evaluator_5card_instance
from nuts import BOARD_SIZE_TO_STREET, HOLE_SIZE, NutsResult, nuts_for_board

logger = logging.getLogger(__name__)

TABLES_ENV_VAR = 'OMAHA_NUTS_TABLES'

CardLike = Union[int, str]


def to_cards(cards: Sequence[CardLike]) -> list:
    return [Card.from_str(c) if isinstance(c, str) else c for c in cards]


class NutsEngine:
    def __init__(self, table_path: Optional[str] = None):
        table_path = table_path or os.environ.get(TABLES_ENV_VAR)
        if not table_path:
            self.evaluator = evaluator_5card_instance
            return
        try:
            table = LookupTable5Card.load(table_path)
        except FileNotFoundError:
            logger.info("Table cache %s not found, building lookup tables", table_path)
            table = evaluator_5card_instance.table
            table.save(table_path)
        self.evaluator = Evaluator5Card(table)

    def evaluate(self, cards: Sequence[CardLike]) -> int:
        return self.evaluator.evaluate(to_cards(cards))

    def describe(self, cards: Sequence[CardLike]) -> str:
        rank = self.evaluate(cards)
        return self.evaluator.class_to_string(self.evaluator.get_rank_class(rank))

    def calculate(self, community: Sequence[CardLike], hole: Sequence[CardLike], discard: Sequence[CardLike] = ()) -> NutsResult:
        return nuts_for_board(to_cards(community), to_cards(hole), to_cards(discard), self.evaluator)

    def calculate_players(self, players: Dict[str, Sequence[CardLike]], community: Sequence[CardLike],
                          names: Optional[Sequence[str]] = None) -> Dict[str, NutsResult]:
        """
        Для каждого игрока известные карты остальных игроков уходят в сброс.
        names - для кого считать (по умолчанию для всех).
        """
        holes = {name: to_cards(hole) for name, hole in players.items()}
        board = to_cards(community)
        results = {}
        for name in (holes if names is None else names):
            hole = holes[name]
            discard = [c for other, other_hole in holes.items() if other != name for c in other_hole]
            results[name] = nuts_for_board(board, hole, discard, self.evaluator)
        return results

    @staticmethod
    def report(street: str, result: NutsResult) -> str:
        if street == 'river':
            return f"[river] {'THE NUTS! :)' if result.nuts else 'Not the nuts :('}"
        return f"[{street}] River nuts = {result.percentage:g}%"

    def hud(self, players: Dict[str, Sequence[CardLike]], community: Sequence[CardLike]) -> Dict[str, str]:
        street = BOARD_SIZE_TO_STREET.get(len(community))
        players = {name: hole for name, hole in players.items() if hole}
        # Неполные руки не считаются, но их карты остаются в сбросе у остальных
        names = [name for name, hole in players.items() if len(hole) == HOLE_SIZE]
        if street is None or not names:
            return {}
        results = self.calculate_players(players, community, names)
        return {name: self.report(street, result) for name, result in results.items()}
