# omaha_nuts/card.py
"""Базовая логика для представления карт (кодировка Cactus Kev)."""
from typing import List, Dict, Optional, Tuple, FrozenSet

# --- Константы Карт ---
STR_RANKS: str = '23456789TJQKA'
INT_RANKS: range = range(13)
PRIMES: List[int] = [2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41]

RANK_CHAR_TO_INT: Dict[str, int] = {rank: i for i, rank in enumerate(STR_RANKS)}
SUIT_CHAR_TO_INT: Dict[str, int] = {'s': 1, 'h': 2, 'd': 4, 'c': 8}

INT_RANK_TO_CHAR: Dict[int, str] = {i: rank for i, rank in enumerate(STR_RANKS)}
INT_SUIT_TO_CHAR: Dict[int, str] = {1: 's', 2: 'h', 4: 'd', 8: 'c'}

NUM_CARDS: int = 52


class InvalidCardError(ValueError):
    """Токен не является картой."""


class Card:
    @staticmethod
    def encode(rank_char: str, suit_char: str) -> int:
        """
        Упаковывает ранг и масть в int:
        биты 0-7 - простое число ранга, 8-11 - ранг, 12-15 - масть, 16+ранг - битовая маска ранга.
        """
        rank_int = RANK_CHAR_TO_INT.get(rank_char.upper()) if isinstance(rank_char, str) else None
        suit_int = SUIT_CHAR_TO_INT.get(suit_char.lower()) if isinstance(suit_char, str) else None

        if rank_int is None: raise InvalidCardError(f"Invalid rank: {rank_char!r}")
        if suit_int is None: raise InvalidCardError(f"Invalid suit: {suit_char!r}")

        rank_prime = PRIMES[rank_int]
        bitrank = 1 << (rank_int + 16)
        suit = suit_int << 12
        rank = rank_int << 8
        return bitrank | suit | rank | rank_prime

    @staticmethod
    def from_str(card_str: str) -> int:
        if not isinstance(card_str, str) or len(card_str.strip()) != 2:
            raise InvalidCardError(f"Invalid card string format: {card_str!r}")
        card_str = card_str.strip()
        return Card.encode(card_str[0], card_str[1])

    @staticmethod
    def to_str(card_int: Optional[int]) -> str:
        if not isinstance(card_int, int) or card_int not in FULL_DECK_CARDS: return "??"
        rank_char = INT_RANK_TO_CHAR[Card.get_rank_int(card_int)]
        suit_char = INT_SUIT_TO_CHAR[Card.get_suit_int(card_int)]
        return rank_char + suit_char

    @staticmethod
    def get_rank_int(card_int: int) -> int: return (card_int >> 8) & 0xF
    @staticmethod
    def get_suit_int(card_int: int) -> int: return (card_int >> 12) & 0xF
    @staticmethod
    def get_prime(card_int: int) -> int: return card_int & 0xFF
    @staticmethod
    def get_bitrank(card_int: int) -> int: return (card_int >> 16) & 0x1FFF


def parse_cards(cards_str: Optional[str]) -> List[int]:
    """'As,Kd,2c' -> список упакованных карт. Пустая строка -> []."""
    if not cards_str:
        return []
    return [Card.from_str(token) for token in cards_str.split(',')]


def cards_to_str(cards) -> str:
    return ','.join(Card.to_str(c) for c in cards)


# Инициализация полной колоды
FULL_DECK: Tuple[int, ...] = tuple(Card.encode(r, s) for r in STR_RANKS for s in SUIT_CHAR_TO_INT)
FULL_DECK_CARDS: FrozenSet[int] = frozenset(FULL_DECK)
if len(FULL_DECK_CARDS) != NUM_CARDS:
    raise RuntimeError("Deck initialization failed, card count is not 52.")
