"""回合状态机：推测 → 出示 → 记录 →（指控结算）→ 推测。

所有存活座位同时行动。每个状态只保存结算下一个事件所需的数据，
事件处理要么原地更新当前状态，要么返回替换它的新状态或对局结束结果。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .chronicle import Chronicle
from .errors import InvalidShare, MalformedEvent, Rejection
from .events import Accuse, Event, SetReady, ShareCard, Suggest
from .models import Card, Crime, Skin
from .seats import SeatTable


logger = logging.getLogger(__name__)


@dataclass
class SuggestRound:
    suggestions: Dict[int, Crime] = field(default_factory=dict)


@dataclass
class ShareRound:
    suggestions: Dict[int, Crime]
    disclosers: Dict[int, Optional[int]]
    shared: Dict[int, Card] = field(default_factory=dict)

    def owed_by(self, seat: int) -> List[int]:
        """seat 需要向哪些推测者出示牌（含已出示、尚可更换的）。"""
        return [guesser for guesser, discloser in sorted(self.disclosers.items()) if discloser == seat]

    def pending(self) -> List[int]:
        return [
            guesser
            for guesser, discloser in sorted(self.disclosers.items())
            if discloser is not None and guesser not in self.shared
        ]


@dataclass
class RecordRound:
    suggestions: Dict[int, Crime]
    disclosers: Dict[int, Optional[int]]
    shared: Dict[int, Card]
    ready: Dict[int, bool]
    failed: Dict[int, Crime] = field(default_factory=dict)


@dataclass
class AccusedRound:
    failed: Dict[int, Crime]
    ready: Dict[int, bool]


Round = Union[SuggestRound, ShareRound, RecordRound, AccusedRound]


@dataclass(frozen=True)
class GameOverResult:
    winners: List[int]


Step = Union[SuggestRound, ShareRound, RecordRound, AccusedRound, GameOverResult, Rejection]


class TurnEngine:
    """持有当前回合状态，把座位事件结算为下一个状态。"""

    def __init__(self, skin: Skin, seats: SeatTable, solution: Crime, chronicle: Optional[Chronicle] = None) -> None:
        self.skin = skin
        self.seats = seats
        self.solution = solution
        self.chronicle = chronicle or Chronicle(seats=[player.role.name for player in seats.players])
        self.round_no = 1
        self.current: Round = SuggestRound()
        self.result: Optional[GameOverResult] = None

    # ------------------------------------------------------------- dispatch --
    def process(self, seat: int, event: Event) -> Optional[Rejection]:
        """结算一个事件。非法或过期的操作返回拒绝原因，不改变任何状态。"""
        if self.result is not None:
            return Rejection.GAME_OVER
        # 出局者仍要替别人的推测出示手牌，其余操作一律忽略
        if not isinstance(event, ShareCard) and not self.seats.is_alive(seat):
            return Rejection.SEAT_DEAD

        step = self._dispatch(seat, event)
        if isinstance(step, Rejection):
            return step
        if isinstance(step, GameOverResult):
            self.result = step
            self.chronicle.set_winners([self.seats.name_of(winner) for winner in step.winners])
            logger.info("对局结束，胜者：%s", self.chronicle.winners)
        elif step is not self.current:
            logger.debug("回合 %d 进入 %s", self.round_no, type(step).__name__)
            self.current = step
        return None

    def _dispatch(self, seat: int, event: Event) -> Step:
        match self.current, event:
            case SuggestRound() as rnd, Suggest(crime=crime):
                return self._suggest(rnd, seat, crime)
            case ShareRound() as rnd, ShareCard(card=card, share_with=share_with):
                return self._share(rnd, seat, card, share_with)
            case RecordRound() as rnd, SetReady(ready=ready):
                rnd.ready[seat] = ready
                return self._settle_record(rnd)
            case RecordRound() as rnd, Accuse(crime=crime):
                return self._accuse(rnd, seat, crime)
            case AccusedRound() as rnd, SetReady(ready=ready):
                rnd.ready[seat] = ready
                return self._next_round() if all(rnd.ready.values()) else rnd
            case _:
                return Rejection.WRONG_STATE

    # -------------------------------------------------------------- suggest --
    def _suggest(self, rnd: SuggestRound, seat: int, crime: Crime) -> Step:
        rnd.suggestions[seat] = self.skin.validate_crime(crime)
        if any(living not in rnd.suggestions for living in self.seats.living()):
            return rnd

        disclosers = {guesser: self.seats.find_discloser(guesser, guess) for guesser, guess in rnd.suggestions.items()}
        for guesser in sorted(disclosers):
            discloser = disclosers[guesser]
            self.chronicle.add_suggestion(
                self.round_no,
                self.seats.name_of(guesser),
                rnd.suggestions[guesser],
                self.seats.name_of(discloser) if discloser is not None else None,
            )
        return self._settle_share(ShareRound(suggestions=dict(rnd.suggestions), disclosers=disclosers))

    # ---------------------------------------------------------------- share --
    def _share(self, rnd: ShareRound, seat: int, card: Card, share_with: Optional[str]) -> Step:
        owed = rnd.owed_by(seat)
        if not owed:
            return Rejection.NOT_DISCLOSER

        if share_with is not None:
            guesser = self.seats.index_of(share_with)
            if guesser not in owed:
                return Rejection.NOT_DISCLOSER
        else:
            pending = [g for g in owed if g not in rnd.shared]
            if not pending:
                return Rejection.NOTHING_OWED
            if len(pending) > 1:
                raise MalformedEvent("需要用 share_with 指明出示给谁")
            guesser = pending[0]

        guess = rnd.suggestions[guesser]
        if not self.seats.secrets[seat].holds(card) or card.name not in guess.card_names():
            raise InvalidShare(f"{card.name} 不在手牌中或不属于本次推测")
        hand = self.seats.secrets[seat].hand
        rnd.shared[guesser] = hand[hand.index(card)]
        return self._settle_share(rnd)

    def _settle_share(self, rnd: ShareRound) -> Step:
        if rnd.pending():
            return rnd
        return RecordRound(
            suggestions=rnd.suggestions,
            disclosers=rnd.disclosers,
            shared=dict(rnd.shared),
            ready={living: False for living in self.seats.living()},
        )

    # --------------------------------------------------------------- record --
    def _accuse(self, rnd: RecordRound, seat: int, crime: Crime) -> Step:
        crime = self.skin.validate_crime(crime)
        correct = crime == self.solution
        self.chronicle.add_accusation(self.round_no, self.seats.name_of(seat), crime, correct)
        if correct:
            return GameOverResult(winners=[seat])

        self.seats.players[seat].is_dead = True
        rnd.failed[seat] = crime
        rnd.ready.pop(seat, None)
        logger.info("%s 指控错误，出局", self.seats.name_of(seat))

        living = self.seats.living()
        if len(living) <= 1:
            return GameOverResult(winners=living)
        return self._settle_record(rnd)

    def _settle_record(self, rnd: RecordRound) -> Step:
        if not all(rnd.ready.values()):
            return rnd
        living = self.seats.living()
        if len(living) <= 1:
            return GameOverResult(winners=living)
        if rnd.failed:
            return AccusedRound(failed=dict(rnd.failed), ready={seat: False for seat in living})
        return self._next_round()

    def _next_round(self) -> SuggestRound:
        self.round_no += 1
        return SuggestRound()

    # -------------------------------------------------------------- queries --
    def is_awaiting(self, seat: int) -> bool:
        """当前状态是否还在等待该座位行动。"""
        if self.result is not None:
            return False
        match self.current:
            case SuggestRound(suggestions=suggestions):
                return self.seats.is_alive(seat) and seat not in suggestions
            case ShareRound() as rnd:
                return any(guesser not in rnd.shared for guesser in rnd.owed_by(seat))
            case RecordRound(ready=ready) | AccusedRound(ready=ready):
                return seat in ready and not ready[seat]
        return False
