import json

import pytest

from deduction.catalog import DEFAULT_SKINS_DIR, SkinRepository, load_default_config
from deduction.errors import SkinFormatError, SkinNotFoundError


@pytest.fixture(scope="module")
def repo():
    return SkinRepository(base_dir=DEFAULT_SKINS_DIR)


def test_bundled_skins_load(repo):
    assert list(repo.list_skins()) == ["classic", "familyCookies"]
    classic = repo.get("classic")
    assert classic.tool_descriptor == "Weapon"
    assert (len(classic.roles), len(classic.tools), len(classic.places)) == (8, 10, 10)
    assert classic.roles[0].color == "#a20101"
    assert repo.get("familyCookies").tool_descriptor == "Cookie"


def test_role_names_unique_and_cards_not_shared(repo):
    seen = set()
    for name in repo.list_skins():
        skin = repo.get(name)
        roles = [card.name for card in skin.roles]
        assert len(roles) == len(set(roles))
        cards = set(skin.all_cards())
        assert not cards & seen
        seen |= cards


def test_unknown_skin(repo):
    with pytest.raises(SkinNotFoundError):
        repo.get("nope")
    with pytest.raises(SkinNotFoundError):
        load_default_config().skin("nope")


def _write(tmp_path, filename, data):
    (tmp_path / filename).write_text(json.dumps(data), encoding="utf-8")


def test_duplicate_role_names_rejected(tmp_path):
    _write(tmp_path, "dup.json", {"name": "dup", "roles": ["A", "A"], "tools": ["T"], "places": ["P"]})
    with pytest.raises(SkinFormatError):
        SkinRepository(base_dir=tmp_path).load()


def test_card_shared_between_skins_rejected(tmp_path):
    _write(tmp_path, "one.json", {"name": "one", "roles": ["A"], "tools": ["Rope"], "places": ["P1"]})
    _write(tmp_path, "two.json", {"name": "two", "roles": ["B"], "tools": ["Rope"], "places": ["P2"]})
    with pytest.raises(SkinFormatError):
        SkinRepository(base_dir=tmp_path).load()


def test_build_config_defaults(tmp_path):
    _write(tmp_path, "mini.json", {"name": "mini", "roles": ["A", "B"], "tools": ["T"], "places": ["P"]})
    config = SkinRepository(base_dir=tmp_path).build_config()
    assert config.default_skin == "mini"
    assert config.skin("mini").tool_descriptor == "Tool"
