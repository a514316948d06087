"""命令行入口：由自动玩家完整跑一局，演示用。"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Dict, List

from .bots import RuleBasedPlayer, setup_events
from .catalog import DEFAULT_SKINS_DIR, SkinRepository
from .models import GameConfig
from .room import Room
from .session import SessionStatus
from .views import card_to_dict


DEFAULT_NAMES: List[str] = [
    "阿岚",
    "老周",
    "小鹿",
    "船长",
    "诗人",
    "大卫",
    "米粒",
    "阿福",
]

MAX_ACTIONS_PER_PASS = 16


def _ensure_skins_dir(path: Path) -> Path:
    if not path.exists() or not path.is_dir():
        raise FileNotFoundError(f"未找到 skins 目录：{path}")
    return path


def _send(room: Room, connection_id: int, event: Dict[str, object]) -> None:
    room.process_event(connection_id, {"kind": "GameEvent", "event": event})


def play_demo(config: GameConfig, num_players: int, rng: random.Random, max_rounds: int = 50) -> Room:
    """建房、占座、开局，然后让自动玩家轮流行动直到结束或超过轮数上限。"""
    skin = config.skin(config.default_skin)
    if not 2 <= num_players <= min(len(skin.roles), len(DEFAULT_NAMES)):
        raise ValueError(f"皮肤 {skin.name} 不支持 {num_players} 名玩家")

    room = Room("demo", config, rng=rng)
    bots: Dict[int, RuleBasedPlayer] = {}
    for role, name in zip(skin.roles[:num_players], DEFAULT_NAMES):
        connection_id = room.add_connection()
        for event in setup_events(card_to_dict(role), name):
            _send(room, connection_id, event)
        bots[connection_id] = RuleBasedPlayer(seat=role.name, rng=rng)
    _send(room, next(iter(bots)), {"kind": "Start"})

    session = room.session
    while session.status == SessionStatus.IN_PROGRESS and session.engine.round_no <= max_rounds:
        progressed = False
        for connection_id, bot in bots.items():
            for _ in range(MAX_ACTIONS_PER_PASS):
                event = bot.act(room.state_for_connection(connection_id)["game"])
                if event is None or session.status != SessionStatus.IN_PROGRESS:
                    break
                _send(room, connection_id, event)
                progressed = True
        if not progressed:
            break
    return room


def _print_postgame(room: Room) -> None:
    engine = room.session.engine
    print("对局关键信息复盘：")
    for line in engine.chronicle.summary_lines():
        print(line)
    solution = engine.solution
    print(f"真相：{solution.role.name} / {solution.tool.name} / {solution.place.name}")
    if engine.result is None:
        print(f"达到轮数上限，对局未分胜负（第{engine.round_no}轮）。")
    elif engine.result.winners:
        names = "、".join(engine.seats.name_of(seat) for seat in engine.result.winners)
        print(f"对局结束，胜者：{names}。")
    else:
        print("对局结束，无人获胜。")


def run_cli(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="命令行推理桌游演示")
    parser.add_argument("--seed", type=int, default=None, help="随机种子，复现演示用")
    parser.add_argument("--players", type=int, default=4, help="自动玩家人数")
    parser.add_argument("--skin", default=None, help="皮肤名，默认 classic")
    parser.add_argument("--skins", type=Path, default=DEFAULT_SKINS_DIR, help="皮肤目录路径")
    parser.add_argument("--max-rounds", type=int, default=50)
    parser.add_argument("--verbose", action="store_true", help="输出引擎日志")
    args = parser.parse_args(argv)

    if hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8")
        except ValueError:
            pass
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    rng = random.Random(args.seed)
    repo = SkinRepository(base_dir=_ensure_skins_dir(args.skins.resolve()))
    config = repo.build_config(default_skin=args.skin)
    print(f"GM：{args.players} 名玩家入座，皮肤 {config.default_skin}，祝各位好运！")
    room = play_demo(config, args.players, rng, max_rounds=args.max_rounds)
    _print_postgame(room)


if __name__ == "__main__":
    run_cli()


__all__ = ["run_cli", "play_demo"]
