"""发牌：抽出谜底并把剩余牌均分到各手。"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, TypeVar

from .errors import InvalidPlayerCount
from .models import Card, Crime, Skin


T = TypeVar("T")


@dataclass(frozen=True)
class Deal:
    solution: Crime
    hands: List[List[Card]]


def pick_one(pool: List[T], rng: random.Random) -> T:
    """从 pool 中随机移除一项并返回。"""
    return pool.pop(rng.randrange(len(pool)))


def pick_many(pool: List[T], count: int, rng: random.Random) -> List[T]:
    return [pick_one(pool, rng) for _ in range(count)]


def hand_sizes(deck_size: int, num_seats: int) -> List[int]:
    """前 deck_size % num_seats 手各多一张。"""
    per_hand, extra = divmod(deck_size, num_seats)
    return [per_hand + 1 if i < extra else per_hand for i in range(num_seats)]


def deal(skin: Skin, num_seats: int, rng: Optional[random.Random] = None) -> Deal:
    if num_seats < 2:
        raise InvalidPlayerCount(f"至少需要 2 个座位，当前 {num_seats}")
    rng = rng or random.Random()

    roles = list(skin.roles)
    tools = list(skin.tools)
    places = list(skin.places)
    solution = Crime(role=pick_one(roles, rng), tool=pick_one(tools, rng), place=pick_one(places, rng))

    deck = roles + tools + places
    hands = [
        sorted(pick_many(deck, size, rng), key=Card.sort_key)
        for size in hand_sizes(len(deck), num_seats)
    ]
    return Deal(solution=solution, hands=hands)
