from typing import Callable, Dict, List

import pytest

from deduction.models import Card, CardKind, Crime, GameConfig, ProtoPlayer, Skin
from deduction.seats import SeatTable
from deduction.turns import TurnEngine


@pytest.fixture()
def skin() -> Skin:
    return Skin(
        name="tiny",
        tool_descriptor="Weapon",
        roles=(
            Card(CardKind.ROLE, "A", "#aa0000"),
            Card(CardKind.ROLE, "B", "#00aa00"),
            Card(CardKind.ROLE, "C", "#0000aa"),
        ),
        tools=(Card(CardKind.TOOL, "Rope"), Card(CardKind.TOOL, "Wrench")),
        places=(Card(CardKind.PLACE, "Hall"), Card(CardKind.PLACE, "Study")),
    )


@pytest.fixture()
def card(skin) -> Callable[[str], Card]:
    def lookup(name: str) -> Card:
        return next(c for c in skin.all_cards() if c.name == name)

    return lookup


@pytest.fixture()
def crime(card) -> Callable[[str, str, str], Crime]:
    def build(role: str, tool: str, place: str) -> Crime:
        return Crime(role=card(role), tool=card(tool), place=card(place))

    return build


@pytest.fixture()
def solution(crime) -> Crime:
    return crime("C", "Rope", "Hall")


@pytest.fixture()
def hands(card) -> Dict[str, List[Card]]:
    # 7 张牌去掉谜底剩 4 张，三手分别 2/1/1
    return {
        "A": [card("B"), card("Wrench")],
        "B": [card("A")],
        "C": [card("Study")],
    }


@pytest.fixture()
def engine(skin, hands, solution) -> TurnEngine:
    protos = [ProtoPlayer(role=role, name=f"player-{role.name}") for role in skin.roles]
    seats = SeatTable.build(skin, protos, [hands[role.name] for role in skin.roles])
    return TurnEngine(skin, seats, solution)


@pytest.fixture()
def config(skin) -> GameConfig:
    return GameConfig(skins={"tiny": skin}, default_skin="tiny")
