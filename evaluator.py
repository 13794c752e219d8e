# omaha_nuts/evaluator.py
"""
Модуль для оценки 5-карточных рук за O(1).
Таблицы Cactus Kev: flushes / unique5 по 13-битной маске рангов,
products / values - отсортированные произведения простых чисел для рук с парами.
"""
import itertools
import logging
import pickle
from bisect import bisect_left
from typing import List, Sequence, Tuple, Dict

import numpy as np

from card import PRIMES, INT_RANKS

logger = logging.getLogger(__name__)


class InvalidHandError(ValueError):
    """Набор карт не является корректной рукой."""


class ImpossibleHandError(InvalidHandError):
    """Рука не найдена в таблицах: дубли карт или битые данные."""


class LookupTable5Card:
    MAX_STRAIGHT_FLUSH = 10; MAX_FOUR_OF_A_KIND = 166; MAX_FULL_HOUSE = 322
    MAX_FLUSH = 1599; MAX_STRAIGHT = 1609; MAX_THREE_OF_A_KIND = 2467
    MAX_TWO_PAIR = 3325; MAX_PAIR = 6185; MAX_HIGH_CARD = 7462
    RANK_CLASS_TO_STRING = {1: "Straight Flush", 2: "Four of a Kind", 3: "Full House", 4: "Flush", 5: "Straight", 6: "Three of a Kind", 7: "Two Pair", 8: "Pair", 9: "High Card"}

    TABLE_SIZE = 1 << 13
    NUM_PRODUCTS = 4888
    # От A-high до колеса A-5
    STRAIGHT_RANK_BITS = [0b1111100000000, 0b0111110000000, 0b0011111000000, 0b0001111100000, 0b0000111110000, 0b0000011111000, 0b0000001111100, 0b0000000111110, 0b0000000011111, 0b1000000001111]

    def __init__(self, flushes: np.ndarray = None, unique5: np.ndarray = None,
                 products: np.ndarray = None, values: np.ndarray = None):
        if flushes is None:
            self.flushes = np.zeros(self.TABLE_SIZE, dtype=np.uint16)
            self.unique5 = np.zeros(self.TABLE_SIZE, dtype=np.uint16)
            self._calculate_flushes()
            self.products, self.values = self._calculate_multiples()
            logger.info("Lookup tables built: %d products", len(self.products))
        else:
            self.flushes, self.unique5 = np.asarray(flushes), np.asarray(unique5)
            self.products, self.values = np.asarray(products), np.asarray(values)
        self._check_integrity()
        for arr in (self.flushes, self.unique5, self.products, self.values):
            arr.setflags(write=False)
        # Для горячего цикла: индексация tuple быстрее индексации ndarray
        self.flush_lookup: Tuple[int, ...] = tuple(self.flushes.tolist())
        self.unique5_lookup: Tuple[int, ...] = tuple(self.unique5.tolist())
        self.product_keys: Tuple[int, ...] = tuple(self.products.tolist())
        self.product_values: Tuple[int, ...] = tuple(self.values.tolist())

    def _calculate_flushes(self):
        all_rank_bits = [sum(1 << i for i in combo) for combo in itertools.combinations(INT_RANKS, 5)]
        straights = set(self.STRAIGHT_RANK_BITS)
        highcard_rank_bits = sorted([rb for rb in all_rank_bits if rb not in straights], reverse=True)

        for rank, sf_bits in enumerate(self.STRAIGHT_RANK_BITS, start=1):
            self.flushes[sf_bits] = rank
        for rank, f_bits in enumerate(highcard_rank_bits, start=self.MAX_FULL_HOUSE + 1):
            self.flushes[f_bits] = rank
        # Те же маски без флеша: стриты и старшая карта
        for rank, s_bits in enumerate(self.STRAIGHT_RANK_BITS, start=self.MAX_FLUSH + 1):
            self.unique5[s_bits] = rank
        for rank, h_bits in enumerate(highcard_rank_bits, start=self.MAX_PAIR + 1):
            self.unique5[h_bits] = rank

    def _calculate_multiples(self) -> Tuple[np.ndarray, np.ndarray]:
        entries: List[Tuple[int, int]] = []
        backwards_ranks = range(len(INT_RANKS) - 1, -1, -1)

        rank = self.MAX_STRAIGHT_FLUSH + 1
        for quad_idx in backwards_ranks:
            for kick_idx in [k for k in backwards_ranks if k != quad_idx]:
                entries.append((PRIMES[quad_idx]**4 * PRIMES[kick_idx], rank)); rank += 1
        rank = self.MAX_FOUR_OF_A_KIND + 1
        for trip_idx in backwards_ranks:
            for pair_idx in [p for p in backwards_ranks if p != trip_idx]:
                entries.append((PRIMES[trip_idx]**3 * PRIMES[pair_idx]**2, rank)); rank += 1
        rank = self.MAX_STRAIGHT + 1
        for trip_idx in backwards_ranks:
            for k1, k2 in itertools.combinations([k for k in backwards_ranks if k != trip_idx], 2):
                entries.append((PRIMES[trip_idx]**3 * PRIMES[k1] * PRIMES[k2], rank)); rank += 1
        rank = self.MAX_THREE_OF_A_KIND + 1
        for p1, p2 in itertools.combinations(backwards_ranks, 2):
            for kick_idx in [k for k in backwards_ranks if k != p1 and k != p2]:
                entries.append((PRIMES[p1]**2 * PRIMES[p2]**2 * PRIMES[kick_idx], rank)); rank += 1
        rank = self.MAX_TWO_PAIR + 1
        for pair_idx in backwards_ranks:
            for k1, k2, k3 in itertools.combinations([k for k in backwards_ranks if k != pair_idx], 3):
                entries.append((PRIMES[pair_idx]**2 * PRIMES[k1] * PRIMES[k2] * PRIMES[k3], rank)); rank += 1

        table = np.array(entries, dtype=np.int64)
        order = np.argsort(table[:, 0], kind="stable")
        return table[order, 0], table[order, 1].astype(np.uint16)

    def _check_integrity(self):
        if self.flushes.shape != (self.TABLE_SIZE,) or self.unique5.shape != (self.TABLE_SIZE,):
            raise ValueError("Flush/unique5 tables must have 8192 entries")
        if self.products.shape != (self.NUM_PRODUCTS,) or self.values.shape != (self.NUM_PRODUCTS,):
            raise ValueError(f"Products/values tables must have {self.NUM_PRODUCTS} entries")
        if np.any(np.diff(self.products) <= 0):
            raise ValueError("Products table must be strictly ascending")

    # --- Кэш таблиц на диске ---
    def save(self, path: str):
        with open(path, 'wb') as f:
            pickle.dump({'flushes': self.flushes, 'unique5': self.unique5,
                         'products': self.products, 'values': self.values}, f)
        logger.info("Lookup tables saved to %s", path)

    @classmethod
    def load(cls, path: str) -> 'LookupTable5Card':
        with open(path, 'rb') as f:
            data: Dict[str, np.ndarray] = pickle.load(f)
        logger.info("Lookup tables loaded from %s", path)
        return cls(data['flushes'], data['unique5'], data['products'], data['values'])


class Evaluator5Card:
    def __init__(self, table: LookupTable5Card = None):
        self.table = table if table is not None else LookupTable5Card()
        self._flushes = self.table.flush_lookup
        self._unique5 = self.table.unique5_lookup
        self._products = self.table.product_keys
        self._values = self.table.product_values

    def evaluate(self, cards: Sequence[int]) -> int:
        if len(cards) != 5: raise InvalidHandError(f"Requires 5 cards, got {len(cards)}")
        return self.evaluate_five(*cards)

    def evaluate_five(self, c0: int, c1: int, c2: int, c3: int, c4: int) -> int:
        q = (c0 | c1 | c2 | c3 | c4) >> 16

        if c0 & c1 & c2 & c3 & c4 & 0xF000:
            rank = self._flushes[q]
            if not rank:
                raise ImpossibleHandError("Impossible hand: suited cards with repeated ranks")
            return rank

        rank = self._unique5[q]
        if rank:
            return rank

        product = (c0 & 0xFF) * (c1 & 0xFF) * (c2 & 0xFF) * (c3 & 0xFF) * (c4 & 0xFF)
        return self._values[self._find_product(product)]

    def _find_product(self, key: int) -> int:
        idx = bisect_left(self._products, key)
        if idx == len(self._products) or self._products[idx] != key:
            raise ImpossibleHandError(f"Impossible hand: prime product {key} not found")
        return idx

    def get_rank_class(self, hand_rank: int) -> int:
        if not (0 < hand_rank <= self.table.MAX_HIGH_CARD): raise InvalidHandError(f"Rank out of range: {hand_rank}")
        if hand_rank <= self.table.MAX_STRAIGHT_FLUSH: return 1
        elif hand_rank <= self.table.MAX_FOUR_OF_A_KIND: return 2
        elif hand_rank <= self.table.MAX_FULL_HOUSE: return 3
        elif hand_rank <= self.table.MAX_FLUSH: return 4
        elif hand_rank <= self.table.MAX_STRAIGHT: return 5
        elif hand_rank <= self.table.MAX_THREE_OF_A_KIND: return 6
        elif hand_rank <= self.table.MAX_TWO_PAIR: return 7
        elif hand_rank <= self.table.MAX_PAIR: return 8
        return 9
    def class_to_string(self, class_int: int) -> str: return self.table.RANK_CLASS_TO_STRING.get(class_int, "Unknown")


evaluator_5card_instance = Evaluator5Card()


def evaluate(cards: Sequence[int]) -> int:
    return evaluator_5card_instance.evaluate(cards)


def get_hand_rank(cards: Sequence[int]) -> Tuple[int, int, str]:
    rank = evaluator_5card_instance.evaluate(cards)
    hand_class = evaluator_5card_instance.get_rank_class(rank)
    return rank, hand_class, evaluator_5card_instance.class_to_string(hand_class)
