import random

import pytest

from deduction.errors import InvalidCrime, MalformedEvent
from deduction.events import Accuse, SetName, SetNote, SetReady, SetRole, SetSkin, Start, Suggest
from deduction.models import Card, CardKind, Crime, GameConfig, Mark, Skin
from deduction.session import GameSession, SessionStatus


@pytest.fixture()
def other_skin() -> Skin:
    return Skin(
        name="other",
        tool_descriptor="Cookie",
        roles=(Card(CardKind.ROLE, "X"), Card(CardKind.ROLE, "Y")),
        tools=(Card(CardKind.TOOL, "Gingerbread"),),
        places=(Card(CardKind.PLACE, "Porch"),),
    )


@pytest.fixture()
def session(skin, other_skin) -> GameSession:
    config = GameConfig(skins={"tiny": skin, "other": other_skin}, default_skin="tiny")
    return GameSession(config, rng=random.Random(5))


def _role(name: str) -> Card:
    return Card(CardKind.ROLE, name)


def _seat_everyone(session, names=("A", "B", "C")):
    for conn, name in enumerate(names, start=1):
        session.process_event(conn, SetRole(card=_role(name)))
        session.process_event(conn, SetName(name=f"p{conn}"))
        session.process_event(conn, SetReady(ready=True))


def test_set_role_rules(session):
    session.process_event(1, SetRole(card=_role("A")))
    session.process_event(2, SetRole(card=_role("A")))
    session.process_event(3, SetRole(card=_role("Nobody")))
    session.process_event(4, SetRole(card=Card(CardKind.TOOL, "Rope")))
    assert set(session.protos) == {1}

    # 自己换角色可以
    session.process_event(1, SetRole(card=_role("B")))
    assert session.protos[1].role.name == "B"
    assert session.protos[1].role.color == "#00aa00"
    session.process_event(2, SetRole(card=_role("A")))
    assert session.protos[2].role.name == "A"


def test_name_and_ready_need_a_role(session):
    session.process_event(1, SetName(name="ghost"))
    session.process_event(1, SetReady(ready=True))
    assert session.protos == {}


def test_set_skin_clears_assignments(session):
    _seat_everyone(session)
    session.process_event(1, SetSkin(name="unknown"))
    session.process_event(1, SetSkin(name="tiny"))
    assert len(session.protos) == 3

    session.process_event(1, SetSkin(name="other"))
    assert session.skin.name == "other"
    assert session.protos == {}


def test_start_requires_two_ready_seats(session):
    session.process_event(1, SetRole(card=_role("A")))
    session.process_event(1, SetReady(ready=True))
    session.process_event(1, Start())
    assert session.status == SessionStatus.SETUP

    session.process_event(2, SetRole(card=_role("B")))
    session.process_event(1, Start())
    assert session.status == SessionStatus.SETUP

    session.process_event(2, SetReady(ready=True))
    session.process_event(2, Start())
    assert session.status == SessionStatus.IN_PROGRESS


def test_start_builds_seats_and_secrets(session):
    _seat_everyone(session)
    session.process_event(1, Start())
    engine = session.engine
    assert session.status == SessionStatus.IN_PROGRESS
    assert sorted(engine.seats.name_of(i) for i in range(3)) == ["A", "B", "C"]
    assert sorted(p.hand_size for p in engine.seats.players) == [1, 1, 2]
    for conn in (1, 2, 3):
        seat = session.seat_of(conn)
        assert engine.seats.name_of(seat) == "ABC"[conn - 1]
        assert engine.seats.players[seat].name == f"p{conn}"
    state = session.state_for_connection(1)
    assert state["status"] == "InProgress"
    assert state["turn_state"]["status"] == "Suggest"


def test_setup_events_after_start_are_ignored(session):
    _seat_everyone(session)
    session.process_event(1, Start())
    assert session.process_event(1, SetSkin(name="other")) is True
    assert session.skin.name == "tiny"
    session.process_event(1, SetName(name="renamed"))
    assert all(p.name != "renamed" for p in session.engine.seats.players)


def test_reoccupy_only_disconnected_seat(session):
    _seat_everyone(session)
    session.process_event(1, Start())
    seats = session.engine.seats

    session.process_event(9, SetRole(card=_role("A")))
    assert session.seat_of(9) is None

    session.remove_connection(1)
    seat_a = seats.index_of("A")
    assert not seats.players[seat_a].is_connected
    hand_before = list(seats.secrets[seat_a].hand)

    session.process_event(2, SetRole(card=_role("A")))
    assert session.seat_of(2) == seats.index_of("B")

    session.process_event(9, SetRole(card=_role("A")))
    assert session.seat_of(9) == seat_a
    assert seats.players[seat_a].is_connected
    assert seats.secrets[seat_a].hand == hand_before
    assert len(seats) == 3


def test_set_note_is_local_and_private(session):
    _seat_everyone(session)
    session.process_event(1, Start())
    broadcast = session.process_event(1, SetNote(subject="B", card=Card(CardKind.TOOL, "Rope"), marks=[Mark.Q, Mark.N2]))
    assert broadcast is False

    mine = session.state_for_connection(1)["player_secrets"]["notes"]
    assert mine["B"]["Rope"] == ["?", "2"]
    theirs = session.state_for_connection(2)["player_secrets"]["notes"]
    assert theirs.get("B", {}).get("Rope") != ["?", "2"]

    with pytest.raises(MalformedEvent):
        session.process_event(1, SetNote(subject="Nobody", card=Card(CardKind.TOOL, "Rope"), marks=[]))
    with pytest.raises(MalformedEvent):
        session.process_event(1, SetNote(subject="B", card=Card(CardKind.TOOL, "Spoon"), marks=[]))


def test_spectator_events_are_ignored(session, crime):
    _seat_everyone(session)
    session.process_event(1, Start())
    session.process_event(42, Suggest(crime=crime("A", "Rope", "Hall")))
    assert session.engine.current.suggestions == {}
    spectator = session.state_for_connection(42)
    assert spectator["player_secrets"] is None
    assert spectator["seat"] is None


def test_invalid_crime_propagates(session):
    _seat_everyone(session)
    session.process_event(1, Start())
    bogus = Crime(_role("A"), Card(CardKind.TOOL, "Spoon"), Card(CardKind.PLACE, "Hall"))
    with pytest.raises(InvalidCrime):
        session.process_event(1, Suggest(crime=bogus))


def test_game_over_keeps_notes_and_reoccupy(session, crime):
    _seat_everyone(session)
    session.process_event(1, Start())
    engine = session.engine
    for conn in (1, 2, 3):
        session.process_event(conn, Suggest(crime=engine.solution))
    session.process_event(2, Accuse(crime=engine.solution))
    assert session.status == SessionStatus.GAME_OVER

    state = session.state_for_connection(3)
    assert state["status"] == "GameOver"
    assert state["winners"] == ["B"]
    assert session.process_event(3, SetNote(subject="A", card=_role("A"), marks=[Mark.E])) is False
    session.process_event(3, SetReady(ready=True))
    assert session.status == SessionStatus.GAME_OVER
