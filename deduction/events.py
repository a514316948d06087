"""入站事件：从客户端发来的普通 dict 解析为带类型的事件。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from .errors import InvalidCrime, MalformedEvent, UnknownEvent
from .models import Card, CardKind, Crime, Mark


class EventKind(str, Enum):
    SET_ROLE = "SetRole"
    SET_NAME = "SetName"
    SET_READY = "SetReady"
    SET_SKIN = "SetSkin"
    START = "Start"
    SUGGEST = "Suggest"
    SHARE_CARD = "ShareCard"
    ACCUSE = "Accuse"
    SET_NOTE = "SetNote"


@dataclass(frozen=True)
class SetRole:
    card: Card


@dataclass(frozen=True)
class SetName:
    name: str


@dataclass(frozen=True)
class SetReady:
    ready: bool


@dataclass(frozen=True)
class SetSkin:
    name: str


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Suggest:
    crime: Crime


@dataclass(frozen=True)
class ShareCard:
    card: Card
    share_with: Optional[str] = None


@dataclass(frozen=True)
class Accuse:
    crime: Crime


@dataclass(frozen=True)
class SetNote:
    subject: str
    card: Card
    marks: List[Mark]


Event = Union[SetRole, SetName, SetReady, SetSkin, Start, Suggest, ShareCard, Accuse, SetNote]


def parse_card(raw: object, expected: Optional[CardKind] = None) -> Card:
    if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
        raise MalformedEvent(f"无法解析的牌：{raw!r}")
    try:
        kind = CardKind(raw.get("kind", expected.value if expected else None))
    except ValueError:
        raise MalformedEvent(f"未知牌种类：{raw.get('kind')!r}") from None
    return Card(kind=kind, name=raw["name"], color=str(raw.get("color", "")))


def parse_crime(raw: object) -> Crime:
    if not isinstance(raw, dict):
        raise InvalidCrime(f"无法解析的三元组：{raw!r}")
    missing = [key for key in ("role", "tool", "place") if key not in raw]
    if missing or len(raw) != 3:
        raise InvalidCrime(f"三元组必须恰好包含 role/tool/place，缺少 {missing}")
    try:
        return Crime(
            role=parse_card(raw["role"], CardKind.ROLE),
            tool=parse_card(raw["tool"], CardKind.TOOL),
            place=parse_card(raw["place"], CardKind.PLACE),
        )
    except MalformedEvent as exc:
        raise InvalidCrime(str(exc)) from exc


def _parse_marks(raw: object) -> List[Mark]:
    if not isinstance(raw, list):
        raise MalformedEvent(f"marks 必须是列表：{raw!r}")
    try:
        return [Mark(item) for item in raw]
    except ValueError:
        raise MalformedEvent(f"未知记号：{raw!r}") from None


def _require_str(payload: Dict[str, object], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedEvent(f"{key} 必须是字符串")
    return value


def parse_event(payload: Dict[str, object]) -> Event:
    if not isinstance(payload, dict):
        raise MalformedEvent(f"事件必须是对象：{payload!r}")
    try:
        kind = EventKind(payload.get("kind"))
    except ValueError:
        raise UnknownEvent(f"未知事件类型：{payload.get('kind')!r}") from None

    if kind == EventKind.SET_ROLE:
        return SetRole(card=parse_card(payload.get("card"), CardKind.ROLE))
    if kind == EventKind.SET_NAME:
        return SetName(name=_require_str(payload, "name").strip())
    if kind == EventKind.SET_READY:
        ready = payload.get("ready")
        if not isinstance(ready, bool):
            raise MalformedEvent("ready 必须是布尔值")
        return SetReady(ready=ready)
    if kind == EventKind.SET_SKIN:
        return SetSkin(name=_require_str(payload, "name"))
    if kind == EventKind.START:
        return Start()
    if kind == EventKind.SUGGEST:
        return Suggest(crime=parse_crime(payload.get("crime")))
    if kind == EventKind.SHARE_CARD:
        share_with = payload.get("share_with")
        if share_with is not None and not isinstance(share_with, str):
            raise MalformedEvent("share_with 必须是座位名")
        return ShareCard(card=parse_card(payload.get("card")), share_with=share_with)
    if kind == EventKind.ACCUSE:
        return Accuse(crime=parse_crime(payload.get("crime")))
    return SetNote(
        subject=_require_str(payload, "subject"),
        card=parse_card(payload.get("card")),
        marks=_parse_marks(payload.get("marks")),
    )
