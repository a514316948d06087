"""错误类型与拒绝原因。"""

from __future__ import annotations

from enum import Enum


class DeductionError(Exception):
    """所有可向调用方抛出的输入校验错误的基类。"""


class InvalidPlayerCount(DeductionError, ValueError):
    pass


class InvalidCrime(DeductionError, ValueError):
    pass


class InvalidShare(DeductionError, ValueError):
    pass


class MalformedEvent(DeductionError, ValueError):
    pass


class UnknownEvent(MalformedEvent):
    pass


class SkinNotFoundError(DeductionError, KeyError):
    pass


class SkinFormatError(DeductionError, ValueError):
    pass


class Rejection(str, Enum):
    """过期或越权操作的拒绝原因，只记录日志，不抛出。"""

    WRONG_STATE = "wrong_state"
    NOT_A_SEAT = "not_a_seat"
    SEAT_DEAD = "seat_dead"
    NOT_DISCLOSER = "not_discloser"
    NOTHING_OWED = "nothing_owed"
    ROLE_TAKEN = "role_taken"
    ROLE_NOT_IN_SKIN = "role_not_in_skin"
    SEAT_OCCUPIED = "seat_occupied"
    ALREADY_SEATED = "already_seated"
    SAME_SKIN = "same_skin"
    UNKNOWN_SKIN = "unknown_skin"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    NOT_ALL_READY = "not_all_ready"
    GAME_OVER = "game_over"
