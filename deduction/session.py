"""对局会话：开局前的占座与皮肤选择，开局后把事件转交回合状态机。"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Dict, Optional

from .dealer import deal
from .errors import MalformedEvent, Rejection
from .events import Event, SetName, SetNote, SetReady, SetRole, SetSkin, Start
from .models import Card, CardKind, GameConfig, ProtoPlayer
from .seats import SeatTable
from .turns import TurnEngine
from .views import game_over_view, in_progress_view, setup_view


logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    SETUP = "Setup"
    IN_PROGRESS = "InProgress"
    GAME_OVER = "GameOver"


class GameSession:
    """一局游戏。一次只处理一个事件，处理完才接受下一个。"""

    def __init__(self, config: GameConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self.skin = config.skin(config.default_skin)
        self.protos: Dict[int, ProtoPlayer] = {}
        self.seat_by_connection: Dict[int, int] = {}
        self.engine: Optional[TurnEngine] = None

    @property
    def status(self) -> SessionStatus:
        if self.engine is None:
            return SessionStatus.SETUP
        if self.engine.result is not None:
            return SessionStatus.GAME_OVER
        return SessionStatus.IN_PROGRESS

    def seat_of(self, connection_id: int) -> Optional[int]:
        return self.seat_by_connection.get(connection_id)

    # ------------------------------------------------------------- dispatch --
    def process_event(self, connection_id: int, event: Event) -> bool:
        """处理事件；返回 True 表示需要刷新所有连接，False 只刷新当前连接。

        输入格式错误（非法三元组、非法出示等）直接抛出，且不改动任何状态。
        """
        if isinstance(event, SetNote):
            rejection = self._set_note(connection_id, event)
            broadcast = False
        else:
            rejection = self._apply(connection_id, event)
            broadcast = True
        if rejection is not None:
            logger.info("忽略连接 %s 的 %s：%s", connection_id, type(event).__name__, rejection.value)
        return broadcast

    def _apply(self, connection_id: int, event: Event) -> Optional[Rejection]:
        if self.status == SessionStatus.SETUP:
            match event:
                case SetRole(card=card):
                    return self._claim_role(connection_id, card)
                case SetName(name=name):
                    return self._update_proto(connection_id, name=name)
                case SetReady(ready=ready):
                    return self._update_proto(connection_id, is_ready=ready)
                case SetSkin(name=name):
                    return self._set_skin(name)
                case Start():
                    return self._start()
                case _:
                    return Rejection.WRONG_STATE

        if isinstance(event, SetRole):
            return self._reoccupy(connection_id, event.card)
        if self.status == SessionStatus.GAME_OVER:
            return Rejection.GAME_OVER
        seat = self.seat_of(connection_id)
        if seat is None:
            return Rejection.NOT_A_SEAT
        return self.engine.process(seat, event)

    # ---------------------------------------------------------------- setup --
    def _claim_role(self, connection_id: int, card: Card) -> Optional[Rejection]:
        role = self.skin.resolve(card) if card.kind == CardKind.ROLE else None
        if role is None:
            logger.warning("角色 %s 不属于皮肤 %s", card.name, self.skin.name)
            return Rejection.ROLE_NOT_IN_SKIN
        if any(proto.role == role for conn, proto in self.protos.items() if conn != connection_id):
            return Rejection.ROLE_TAKEN
        proto = self.protos.get(connection_id)
        if proto is not None:
            proto.role = role
        else:
            self.protos[connection_id] = ProtoPlayer(role=role)
        return None

    def _update_proto(self, connection_id: int, **changes: object) -> Optional[Rejection]:
        proto = self.protos.get(connection_id)
        if proto is None:
            return Rejection.NOT_A_SEAT
        for key, value in changes.items():
            setattr(proto, key, value)
        return None

    def _set_skin(self, name: str) -> Optional[Rejection]:
        if name not in self.config.skins:
            logger.warning("未知皮肤 %s", name)
            return Rejection.UNKNOWN_SKIN
        if name == self.skin.name:
            return Rejection.SAME_SKIN
        # 座位以皮肤里的角色命名，换皮肤必须清空占座
        self.protos.clear()
        self.skin = self.config.skin(name)
        return None

    def _start(self) -> Optional[Rejection]:
        if len(self.protos) < max(2, self.config.min_players):
            return Rejection.NOT_ENOUGH_PLAYERS
        if not all(proto.is_ready for proto in self.protos.values()):
            return Rejection.NOT_ALL_READY

        order = list(self.protos.items())
        self.rng.shuffle(order)
        dealt = deal(self.skin, len(order), self.rng)
        seats = SeatTable.build(self.skin, [proto for _, proto in order], dealt.hands)
        self.seat_by_connection = {conn: i for i, (conn, _) in enumerate(order)}
        self.engine = TurnEngine(self.skin, seats, dealt.solution)
        self.protos = {}
        logger.info("对局开始：皮肤 %s，座位 %s", self.skin.name, [seats.name_of(i) for i in range(len(seats))])
        return None

    # ---------------------------------------------------------- post-setup --
    def _reoccupy(self, connection_id: int, card: Card) -> Optional[Rejection]:
        if card.kind != CardKind.ROLE or not self.skin.contains(card):
            logger.warning("角色 %s 不属于皮肤 %s", card.name, self.skin.name)
            return Rejection.ROLE_NOT_IN_SKIN
        if connection_id in self.seat_by_connection:
            return Rejection.ALREADY_SEATED
        seats = self.engine.seats
        seat = seats.index_of(card.name)
        if seat is None:
            return Rejection.NOT_A_SEAT
        if seats.players[seat].is_connected:
            return Rejection.SEAT_OCCUPIED
        self.seat_by_connection[connection_id] = seat
        seats.players[seat].is_connected = True
        return None

    def _set_note(self, connection_id: int, event: SetNote) -> Optional[Rejection]:
        if self.engine is None:
            return Rejection.WRONG_STATE
        owner = self.seat_of(connection_id)
        if owner is None:
            return Rejection.NOT_A_SEAT
        seats = self.engine.seats
        subject = seats.index_of(event.subject)
        if subject is None:
            raise MalformedEvent(f"未知座位：{event.subject}")
        if not self.skin.contains(event.card):
            raise MalformedEvent(f"{event.card.name} 不属于皮肤 {self.skin.name}")
        seats.set_note(owner, subject, event.card, event.marks)
        return None

    def remove_connection(self, connection_id: int) -> None:
        if self.engine is None:
            self.protos.pop(connection_id, None)
            return
        seat = self.seat_by_connection.pop(connection_id, None)
        if seat is not None:
            self.engine.seats.players[seat].is_connected = False

    # ---------------------------------------------------------------- views --
    def state_for_connection(self, connection_id: int) -> Dict[str, object]:
        if self.engine is None:
            return setup_view(self.skin, self.config.skin_names, self.protos, connection_id)
        seat = self.seat_of(connection_id)
        if self.engine.result is not None:
            return game_over_view(self.engine, seat)
        return in_progress_view(self.engine, seat)
