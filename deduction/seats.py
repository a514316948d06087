"""座位表：公开玩家信息与私密手牌/笔记，按整数下标寻址。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from .models import Card, Crime, Mark, Player, PlayerSecrets, ProtoPlayer, Skin


def init_notes(skin: Skin, players: Sequence[Player], owner: int, hand: Sequence[Card]) -> Dict[str, Dict[str, List[Mark]]]:
    """自己那一列按手牌标 •/✕，其他人那一列只把自己手里的牌标 ✕。"""
    notes: Dict[str, Dict[str, List[Mark]]] = {}
    for column, player in enumerate(players):
        marks: Dict[str, List[Mark]] = {}
        for card in skin.all_cards():
            in_hand = card in hand
            if column == owner:
                marks[card.name] = [Mark.D if in_hand else Mark.X]
            elif in_hand:
                marks[card.name] = [Mark.X]
        notes[player.role.name] = marks
    return notes


@dataclass
class SeatTable:
    players: List[Player]
    secrets: List[PlayerSecrets]
    _by_name: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_name = {player.role.name: i for i, player in enumerate(self.players)}

    @classmethod
    def build(cls, skin: Skin, protos: Sequence[ProtoPlayer], hands: Sequence[List[Card]]) -> "SeatTable":
        players = [
            Player(role=proto.role, name=proto.name, hand_size=len(hand))
            for proto, hand in zip(protos, hands)
        ]
        secrets = [
            PlayerSecrets(index=i, hand=list(hand), notes=init_notes(skin, players, i, hand))
            for i, hand in enumerate(hands)
        ]
        return cls(players=players, secrets=secrets)

    def __len__(self) -> int:
        return len(self.players)

    # -------------------------------------------------------------- lookups --
    def index_of(self, role_name: str) -> Optional[int]:
        return self._by_name.get(role_name)

    def name_of(self, seat: int) -> str:
        return self.players[seat].role.name

    def is_alive(self, seat: int) -> bool:
        return self.players[seat].alive

    def living(self) -> List[int]:
        return [i for i, player in enumerate(self.players) if player.alive]

    def clockwise_from(self, seat: int) -> Iterator[int]:
        """从 seat 的下家开始顺时针遍历其他所有座位（含出局者）。"""
        n = len(self.players)
        for step in range(1, n):
            yield (seat + step) % n

    def find_discloser(self, guesser: int, crime: Crime) -> Optional[int]:
        names = set(crime.card_names())
        for seat in self.clockwise_from(guesser):
            if any(card.name in names for card in self.secrets[seat].hand):
                return seat
        return None

    # ---------------------------------------------------------------- notes --
    def set_note(self, owner: int, subject: int, card: Card, marks: List[Mark]) -> None:
        column = self.secrets[owner].notes.setdefault(self.name_of(subject), {})
        column[card.name] = list(marks)
