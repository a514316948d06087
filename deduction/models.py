"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import InvalidCrime, SkinNotFoundError


class CardKind(str, Enum):
    """卡牌种类。"""

    ROLE = "Role"
    TOOL = "Tool"
    PLACE = "Place"


KIND_ORDER: Dict[CardKind, int] = {CardKind.ROLE: 0, CardKind.TOOL: 1, CardKind.PLACE: 2}


@dataclass(frozen=True, slots=True)
class Card:
    """一张牌。按 (kind, name) 判等，颜色只用于展示。"""

    kind: CardKind
    name: str
    color: str = field(default="", compare=False)

    def sort_key(self) -> Tuple[int, str]:
        return KIND_ORDER[self.kind], self.name


@dataclass(frozen=True, slots=True)
class Crime:
    """(角色, 凶器, 地点) 三元组：谜底、推测与指控共用。"""

    role: Card
    tool: Card
    place: Card

    def cards(self) -> Tuple[Card, Card, Card]:
        return self.role, self.tool, self.place

    def card_names(self) -> List[str]:
        return [card.name for card in self.cards()]


@dataclass(frozen=True, slots=True)
class Skin:
    """主题牌库，创建后不可变。"""

    name: str
    tool_descriptor: str
    roles: Tuple[Card, ...]
    tools: Tuple[Card, ...]
    places: Tuple[Card, ...]

    def all_cards(self) -> Iterator[Card]:
        yield from self.roles
        yield from self.tools
        yield from self.places

    def cards_of(self, kind: CardKind) -> Tuple[Card, ...]:
        if kind == CardKind.ROLE:
            return self.roles
        if kind == CardKind.TOOL:
            return self.tools
        return self.places

    def contains(self, card: Card) -> bool:
        return card in self.cards_of(card.kind)

    def resolve(self, card: Card) -> Optional[Card]:
        """返回牌库中的同名牌（带颜色等展示信息），不存在时返回 None。"""
        for candidate in self.cards_of(card.kind):
            if candidate == card:
                return candidate
        return None

    def validate_crime(self, crime: Crime) -> Crime:
        errors: List[str] = []
        for expected, card in zip((CardKind.ROLE, CardKind.TOOL, CardKind.PLACE), crime.cards()):
            if card.kind != expected:
                errors.append(f"{card.name} 不是 {expected.value} 牌")
            elif not self.contains(card):
                errors.append(f"{expected.value} {card.name} 不在皮肤 {self.name} 中")
        if errors:
            raise InvalidCrime("；".join(errors))
        return Crime(
            role=self.resolve(crime.role),
            tool=self.resolve(crime.tool),
            place=self.resolve(crime.place),
        )


class Mark(str, Enum):
    """笔记格中的记号，服务端只负责存储。"""

    Q = "?"
    D = "•"
    X = "✕"
    E = "!"
    W = "◦"
    N1 = "1"
    N2 = "2"
    N3 = "3"
    N4 = "4"
    N5 = "5"
    N6 = "6"
    N7 = "7"


@dataclass(slots=True)
class ProtoPlayer:
    """开局前占座的玩家。"""

    role: Card
    name: str = ""
    is_ready: bool = False


@dataclass(slots=True)
class Player:
    """公开的玩家状态。"""

    role: Card
    name: str
    is_connected: bool = True
    is_dead: bool = False
    hand_size: int = 0

    @property
    def alive(self) -> bool:
        return not self.is_dead


@dataclass(slots=True)
class PlayerSecrets:
    """仅座位本人可见的私密状态。"""

    index: int
    hand: List[Card]
    notes: Dict[str, Dict[str, List[Mark]]] = field(default_factory=dict)

    def holds(self, card: Card) -> bool:
        return card in self.hand


@dataclass(slots=True)
class GameConfig:
    """对局配置：牌库目录与开局参数。"""

    skins: Dict[str, Skin]
    default_skin: str = "classic"
    min_players: int = 2

    def __post_init__(self) -> None:
        if self.default_skin not in self.skins:
            raise SkinNotFoundError(self.default_skin)

    @property
    def skin_names(self) -> List[str]:
        return list(self.skins.keys())

    def skin(self, name: str) -> Skin:
        if name not in self.skins:
            raise SkinNotFoundError(name)
        return self.skins[name]
