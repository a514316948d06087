"""皮肤牌库的加载与校验。"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import SkinFormatError, SkinNotFoundError
from .models import Card, CardKind, GameConfig, Skin


DEFAULT_SKINS_DIR = Path(__file__).resolve().parent / "skins"


def _parse_cards(kind: CardKind, raw: object, source: str) -> Tuple[Card, ...]:
    if not isinstance(raw, list) or not raw:
        raise SkinFormatError(f"{source}: {kind.value} 列表为空或格式错误")
    cards: List[Card] = []
    for item in raw:
        if isinstance(item, str):
            cards.append(Card(kind=kind, name=item))
        elif isinstance(item, dict) and isinstance(item.get("name"), str):
            cards.append(Card(kind=kind, name=item["name"], color=str(item.get("color", ""))))
        else:
            raise SkinFormatError(f"{source}: 无法解析的 {kind.value} 牌 {item!r}")
    names = [card.name for card in cards]
    if len(set(names)) != len(names):
        raise SkinFormatError(f"{source}: {kind.value} 牌名重复")
    return tuple(cards)


def parse_skin(data: Dict[str, object], source: str = "<skin>") -> Skin:
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise SkinFormatError(f"{source}: 缺少皮肤名")
    return Skin(
        name=name,
        tool_descriptor=str(data.get("tool_descriptor") or "Tool"),
        roles=_parse_cards(CardKind.ROLE, data.get("roles"), source),
        tools=_parse_cards(CardKind.TOOL, data.get("tools"), source),
        places=_parse_cards(CardKind.PLACE, data.get("places"), source),
    )


@dataclass
class SkinRepository:
    """负责加载 skins/ 目录下的所有皮肤。"""

    base_dir: Path
    _cache: Dict[str, Skin] = None

    def __post_init__(self) -> None:
        self.base_dir = self.base_dir.resolve()
        self._cache = {}

    def load(self) -> None:
        if self._cache:
            return
        owners: Dict[Card, str] = {}
        for file in sorted(self.base_dir.glob("*.json")):
            skin = parse_skin(json.loads(file.read_text(encoding="utf-8")), source=file.name)
            if skin.name in self._cache:
                raise SkinFormatError(f"{file.name}: 皮肤 {skin.name} 重复定义")
            # 同一张牌不能出现在两个皮肤里
            for card in skin.all_cards():
                if card in owners:
                    raise SkinFormatError(f"{file.name}: {card.name} 已属于皮肤 {owners[card]}")
                owners[card] = skin.name
            self._cache[skin.name] = skin

    def list_skins(self) -> Iterable[str]:
        self.load()
        return sorted(self._cache.keys())

    def get(self, name: str) -> Skin:
        self.load()
        if name not in self._cache:
            raise SkinNotFoundError(name)
        return self._cache[name]

    def build_config(self, default_skin: Optional[str] = None, min_players: int = 2) -> GameConfig:
        self.load()
        if not self._cache:
            raise SkinFormatError(f"{self.base_dir} 中没有任何皮肤")
        default = default_skin or ("classic" if "classic" in self._cache else next(iter(self._cache)))
        return GameConfig(skins=dict(self._cache), default_skin=default, min_players=min_players)


def load_default_config(default_skin: Optional[str] = None) -> GameConfig:
    return SkinRepository(base_dir=DEFAULT_SKINS_DIR).build_config(default_skin=default_skin)
