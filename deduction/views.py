"""按座位裁剪后的状态快照，均为可直接 JSON 序列化的普通 dict。"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .models import Card, Crime, Player, PlayerSecrets, ProtoPlayer, Skin
from .seats import SeatTable
from .turns import AccusedRound, RecordRound, ShareRound, SuggestRound, TurnEngine


def card_to_dict(card: Card) -> Dict[str, str]:
    data = {"kind": card.kind.value, "name": card.name}
    if card.color:
        data["color"] = card.color
    return data


def crime_to_dict(crime: Crime) -> Dict[str, Dict[str, str]]:
    return {"role": card_to_dict(crime.role), "tool": card_to_dict(crime.tool), "place": card_to_dict(crime.place)}


def skin_to_dict(skin: Skin) -> Dict[str, object]:
    return {
        "name": skin.name,
        "tool_descriptor": skin.tool_descriptor,
        "roles": [card_to_dict(card) for card in skin.roles],
        "tools": [card_to_dict(card) for card in skin.tools],
        "places": [card_to_dict(card) for card in skin.places],
    }


def player_to_dict(player: Player) -> Dict[str, object]:
    """只包含公开信息。"""
    return {
        "role": card_to_dict(player.role),
        "name": player.name,
        "is_connected": player.is_connected,
        "is_dead": player.is_dead,
        "hand_size": player.hand_size,
    }


def secrets_to_dict(secrets: PlayerSecrets) -> Dict[str, object]:
    return {
        "index": secrets.index,
        "hand": [card_to_dict(card) for card in secrets.hand],
        "notes": {
            subject: {card: [mark.value for mark in marks] for card, marks in column.items()}
            for subject, column in secrets.notes.items()
        },
    }


def _by_name(seats: SeatTable, values: Mapping[int, object]) -> Dict[str, object]:
    return {seats.name_of(seat): value for seat, value in sorted(values.items())}


def _crimes(seats: SeatTable, crimes: Mapping[int, Crime]) -> Dict[str, object]:
    return _by_name(seats, {seat: crime_to_dict(crime) for seat, crime in crimes.items()})


def _disclosers(seats: SeatTable, disclosers: Mapping[int, Optional[int]]) -> Dict[str, Optional[str]]:
    return _by_name(
        seats,
        {guesser: seats.name_of(d) if d is not None else None for guesser, d in disclosers.items()},
    )


def turn_state_for_seat(engine: TurnEngine, seat: Optional[int]) -> Dict[str, object]:
    seats = engine.seats
    match engine.current:
        case SuggestRound(suggestions=suggestions):
            own = suggestions.get(seat) if seat is not None else None
            return {
                "status": "Suggest",
                "suggestion": crime_to_dict(own) if own else None,
                "ready": {seats.name_of(s): s in suggestions for s in seats.living()},
            }
        case ShareRound() as rnd:
            return {
                "status": "Share",
                "suggestions": _crimes(seats, rnd.suggestions),
                "disclosers": _disclosers(seats, rnd.disclosers),
                # 出示中只有出示者本人能看到自己选的牌
                "shared_cards": _by_name(
                    seats,
                    {g: card_to_dict(c) for g, c in rnd.shared.items() if seat is not None and rnd.disclosers[g] == seat},
                ),
                "owed": [seats.name_of(g) for g in rnd.owed_by(seat)] if seat is not None else [],
                "ready": {
                    seats.name_of(s): all(g in rnd.shared for g in rnd.owed_by(s)) for s in range(len(seats))
                },
            }
        case RecordRound() as rnd:
            shared: Dict[int, Optional[Dict[str, str]]] = {}
            for guesser in rnd.suggestions:
                card = rnd.shared.get(guesser)
                entitled = seat is not None and seat in (guesser, rnd.disclosers.get(guesser))
                shared[guesser] = card_to_dict(card) if card is not None and entitled else None
            return {
                "status": "Record",
                "suggestions": _crimes(seats, rnd.suggestions),
                "disclosers": _disclosers(seats, rnd.disclosers),
                "shared_cards": _by_name(seats, shared),
                "failed_accusations": _crimes(seats, rnd.failed),
                "ready": _by_name(seats, rnd.ready),
            }
        case AccusedRound() as rnd:
            return {
                "status": "Accused",
                "failed_accusations": _crimes(seats, rnd.failed),
                "ready": _by_name(seats, rnd.ready),
            }
    raise TypeError(f"未知回合状态：{engine.current!r}")


def in_progress_view(engine: TurnEngine, seat: Optional[int]) -> Dict[str, object]:
    seats = engine.seats
    return {
        "status": "InProgress",
        "skin": skin_to_dict(engine.skin),
        "players": [player_to_dict(player) for player in seats.players],
        "seat": seats.name_of(seat) if seat is not None else None,
        "player_secrets": secrets_to_dict(seats.secrets[seat]) if seat is not None else None,
        "round": engine.round_no,
        "turn_state": turn_state_for_seat(engine, seat),
        "awaiting_you": engine.is_awaiting(seat) if seat is not None else False,
        "chronicle": engine.chronicle.to_dict(),
    }


def game_over_view(engine: TurnEngine, seat: Optional[int]) -> Dict[str, object]:
    seats = engine.seats
    winners: List[int] = engine.result.winners if engine.result else []
    return {
        "status": "GameOver",
        "skin": skin_to_dict(engine.skin),
        "players": [player_to_dict(player) for player in seats.players],
        "seat": seats.name_of(seat) if seat is not None else None,
        "player_secrets": secrets_to_dict(seats.secrets[seat]) if seat is not None else None,
        "winners": [seats.name_of(winner) for winner in winners],
        "solution": crime_to_dict(engine.solution),
        "chronicle": engine.chronicle.to_dict(),
    }


def setup_view(
    skin: Skin,
    skin_names: List[str],
    protos: Mapping[int, ProtoPlayer],
    connection_id: int,
) -> Dict[str, object]:
    return {
        "status": "Setup",
        "skin": skin_to_dict(skin),
        "skins": list(skin_names),
        "players_by_connection": {
            str(conn): {"role": card_to_dict(proto.role), "name": proto.name, "is_ready": proto.is_ready}
            for conn, proto in protos.items()
        },
        "connection_id": connection_id,
    }
