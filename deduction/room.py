"""房间：一组连接共享一局游戏，并记录哪些连接需要重新拉取状态。"""

from __future__ import annotations

import itertools
import logging
import random
import threading
from enum import Enum
from typing import Dict, List, Optional

from .errors import UnknownEvent
from .events import parse_event
from .models import GameConfig
from .session import GameSession


logger = logging.getLogger(__name__)


class RoomEventKind(str, Enum):
    SET_GAME = "SetGame"
    RESTART = "Restart"
    GAME_EVENT = "GameEvent"


class UnknownConnection(KeyError):
    pass


class Room:
    """同一房间内的事件串行处理；不同房间互不共享状态。"""

    def __init__(self, room_id: str, config: GameConfig, rng: Optional[random.Random] = None) -> None:
        self.room_id = room_id
        self.config = config
        self.rng = rng or random.Random()
        self.session = GameSession(config, rng=self.rng)
        self.revisions: Dict[int, int] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def num_connections(self) -> int:
        return len(self.revisions)

    def has_connection(self, connection_id: int) -> bool:
        return connection_id in self.revisions

    def _require(self, connection_id: int) -> None:
        if connection_id not in self.revisions:
            raise UnknownConnection(connection_id)

    def _refresh(self, connection_ids: List[int]) -> List[int]:
        for conn in connection_ids:
            self.revisions[conn] += 1
        return connection_ids

    def add_connection(self) -> int:
        with self._lock:
            connection_id = next(self._ids)
            self.revisions[connection_id] = 0
            self._refresh(list(self.revisions))
            logger.info("房间 %s 新连接 %s", self.room_id, connection_id)
            return connection_id

    def remove_connection(self, connection_id: int) -> None:
        with self._lock:
            self._require(connection_id)
            del self.revisions[connection_id]
            self.session.remove_connection(connection_id)
            self._refresh(list(self.revisions))
            logger.info("房间 %s 连接 %s 断开", self.room_id, connection_id)

    def process_event(self, connection_id: int, payload: Dict[str, object]) -> List[int]:
        """处理一个房间事件，返回需要刷新的连接。格式错误的游戏事件会向上抛出。"""
        with self._lock:
            self._require(connection_id)
            kind = payload.get("kind") if isinstance(payload, dict) else None
            if kind == RoomEventKind.SET_GAME.value:
                broadcast = True
            elif kind == RoomEventKind.RESTART.value:
                self.session = GameSession(self.config, rng=self.rng)
                logger.info("房间 %s 重新开始", self.room_id)
                broadcast = True
            elif kind == RoomEventKind.GAME_EVENT.value:
                try:
                    event = parse_event(payload.get("event"))
                except UnknownEvent as exc:
                    logger.warning("房间 %s 忽略未知事件：%s", self.room_id, exc)
                    return []
                broadcast = self.session.process_event(connection_id, event)
            else:
                logger.warning("房间 %s 忽略未知房间事件：%r", self.room_id, kind)
                return []
            return self._refresh(list(self.revisions) if broadcast else [connection_id])

    def state_for_connection(self, connection_id: int) -> Dict[str, object]:
        with self._lock:
            self._require(connection_id)
            return {
                "room_id": self.room_id,
                "num_connections": self.num_connections,
                "revision": self.revisions[connection_id],
                "game": self.session.state_for_connection(connection_id),
            }


class RoomRegistry:
    """按房间号管理房间，首次访问时创建。"""

    def __init__(self, config: GameConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.seed = seed
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                rng = random.Random(f"{self.seed}:{room_id}") if self.seed is not None else None
                room = Room(room_id, self.config, rng=rng)
                self._rooms[room_id] = room
            return room

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())
