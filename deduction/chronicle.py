"""公共纪要：每轮的推测、出示与指控记录，不含被出示的具体牌。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import Crime


def _crime_names(crime: Crime) -> Dict[str, str]:
    return {"role": crime.role.name, "tool": crime.tool.name, "place": crime.place.name}


@dataclass
class RoundRecord:
    round: int
    suggestions: List[Dict[str, object]] = field(default_factory=list)
    accusations: List[Dict[str, object]] = field(default_factory=list)


@dataclass
class Chronicle:
    seats: List[str]
    rounds: Dict[int, RoundRecord] = field(default_factory=dict)
    winners: Optional[List[str]] = None

    def ensure_round(self, round_no: int) -> RoundRecord:
        if round_no not in self.rounds:
            self.rounds[round_no] = RoundRecord(round=round_no)
        return self.rounds[round_no]

    def add_suggestion(self, round_no: int, guesser: str, crime: Crime, discloser: Optional[str]) -> None:
        record = self.ensure_round(round_no)
        record.suggestions.append({"guesser": guesser, "crime": _crime_names(crime), "discloser": discloser})

    def add_accusation(self, round_no: int, seat: str, crime: Crime, correct: bool) -> None:
        record = self.ensure_round(round_no)
        record.accusations.append({"seat": seat, "crime": _crime_names(crime), "correct": correct})

    def set_winners(self, winners: List[str]) -> None:
        self.winners = list(winners)

    def summary_lines(self) -> List[str]:
        lines: List[str] = []
        for round_no in sorted(self.rounds):
            record = self.rounds[round_no]
            for item in record.suggestions:
                crime = item["crime"]
                shown = f"{item['discloser']} 出示了一张牌" if item["discloser"] else "无人能出示"
                lines.append(
                    f"第{round_no}轮：{item['guesser']} 推测 {crime['role']} / {crime['tool']} / {crime['place']}，{shown}"
                )
            for item in record.accusations:
                crime = item["crime"]
                verdict = "正确" if item["correct"] else "错误，出局"
                lines.append(
                    f"第{round_no}轮：{item['seat']} 指控 {crime['role']} / {crime['tool']} / {crime['place']}，{verdict}"
                )
        return lines

    def to_dict(self) -> Dict[str, object]:
        return {
            "seats": self.seats,
            "rounds": [
                {"round": record.round, "suggestions": record.suggestions, "accusations": record.accusations}
                for _, record in sorted(self.rounds.items())
            ],
            "winners": self.winners,
        }
