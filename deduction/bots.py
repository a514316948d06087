"""轻量规则驱动的自动玩家，便于命令行演示与端到端测试。"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple


CardKey = Tuple[str, str]

SLOTS: List[str] = ["role", "tool", "place"]


def _key(card: Dict[str, object]) -> CardKey:
    return str(card["kind"]), str(card["name"])


def setup_events(role: Dict[str, object], name: str) -> List[Dict[str, object]]:
    """占座、改名、准备。"""
    return [
        {"kind": "SetRole", "card": role},
        {"kind": "SetName", "name": name},
        {"kind": "SetReady", "ready": True},
    ]


@dataclass
class RuleBasedPlayer:
    """只看自己那份快照做决定的自动座位。"""

    seat: str
    rng: random.Random
    seen: Set[CardKey] = field(default_factory=set)
    known: Dict[str, Dict[str, object]] = field(default_factory=dict)
    noted: Set[Tuple[str, CardKey]] = field(default_factory=set)
    pending_notes: List[Dict[str, object]] = field(default_factory=list)

    def act(self, game: Dict[str, object]) -> Optional[Dict[str, object]]:
        """根据快照返回下一个事件；无事可做时返回 None。"""
        if game.get("status") != "InProgress" or game.get("seat") != self.seat:
            return None
        self._observe(game)
        if self.pending_notes:
            return self.pending_notes.pop(0)
        if not game.get("awaiting_you"):
            return None

        turn: Dict[str, object] = game["turn_state"]  # type: ignore[assignment]
        status = turn["status"]
        if status == "Suggest":
            return {"kind": "Suggest", "crime": self._guess(game)}
        if status == "Share":
            return self._share(game, turn)
        if status == "Record":
            solution = self._solution(game)
            if solution is not None:
                return {"kind": "Accuse", "crime": solution}
        return {"kind": "SetReady", "ready": True}

    # -- observe ----------------------------------------------------------------
    def _observe(self, game: Dict[str, object]) -> None:
        secrets: Dict[str, object] = game["player_secrets"]  # type: ignore[assignment]
        for card in secrets["hand"]:
            self.seen.add(_key(card))
        turn: Dict[str, object] = game["turn_state"]  # type: ignore[assignment]
        if turn["status"] != "Record":
            return
        if self.seat not in turn["suggestions"]:
            return
        discloser = turn["disclosers"].get(self.seat)
        if discloser is None:
            # 没人能出示：推测里不在自己手上的牌就是真相
            hand = {_key(card) for card in secrets["hand"]}
            for slot, card in turn["suggestions"][self.seat].items():
                if _key(card) not in hand:
                    self.known[slot] = card
            return
        card = turn["shared_cards"].get(self.seat)
        if card is None:
            return
        key = _key(card)
        self.seen.add(key)
        if (discloser, key) not in self.noted:
            self.noted.add((discloser, key))
            self.pending_notes.append(
                {"kind": "SetNote", "subject": discloser, "card": card, "marks": ["•"]}
            )

    # -- decisions ----------------------------------------------------------------
    def _candidates(self, game: Dict[str, object], plural: str) -> List[Dict[str, object]]:
        skin: Dict[str, object] = game["skin"]  # type: ignore[assignment]
        return [card for card in skin[plural + "s"] if _key(card) not in self.seen]

    def _guess(self, game: Dict[str, object]) -> Dict[str, object]:
        skin: Dict[str, object] = game["skin"]  # type: ignore[assignment]
        crime: Dict[str, object] = {}
        for slot in SLOTS:
            pool = self._candidates(game, slot) or skin[slot + "s"]
            crime[slot] = self.rng.choice(pool)
        return crime

    def _solution(self, game: Dict[str, object]) -> Optional[Dict[str, object]]:
        crime: Dict[str, object] = {}
        for slot in SLOTS:
            if slot in self.known:
                crime[slot] = self.known[slot]
                continue
            pool = self._candidates(game, slot)
            if len(pool) != 1:
                return None
            crime[slot] = pool[0]
        return crime

    def _share(self, game: Dict[str, object], turn: Dict[str, object]) -> Optional[Dict[str, object]]:
        secrets: Dict[str, object] = game["player_secrets"]  # type: ignore[assignment]
        for guesser in turn["owed"]:
            if guesser in turn["shared_cards"]:
                continue
            names = {card["name"] for card in turn["suggestions"][guesser].values()}
            matching = [card for card in secrets["hand"] if card["name"] in names]
            if matching:
                return {"kind": "ShareCard", "card": self.rng.choice(matching), "share_with": guesser}
        return None
