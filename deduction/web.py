"""Web服务器接口。客户端轮询各自连接的状态，revision 变化时重新拉取。"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from flask import Flask, jsonify, request

from .catalog import DEFAULT_SKINS_DIR, SkinRepository
from .errors import DeductionError
from .room import Room, RoomRegistry, UnknownConnection
from .views import skin_to_dict


logger = logging.getLogger(__name__)

app = Flask(__name__)
app.json.ensure_ascii = False

# 房间只存在内存里，进程重启即丢失
_registry: Optional[RoomRegistry] = None


def configure(registry: RoomRegistry) -> None:
    global _registry
    _registry = registry


def _get_registry() -> RoomRegistry:
    global _registry
    if _registry is None:
        _registry = RoomRegistry(SkinRepository(base_dir=DEFAULT_SKINS_DIR).build_config())
    return _registry


def _find_room(room_id: str) -> Optional[Room]:
    return _get_registry().get(room_id)


@app.route("/", methods=["GET"])
def index():
    """API首页。"""
    return jsonify({
        "name": "推理桌游服务器",
        "version": "1.0.0",
        "endpoints": {
            "GET /skins": "列出可用皮肤",
            "GET /rooms": "列出所有房间",
            "POST /rooms/<room_id>/connections": "加入房间（房间不存在时创建）",
            "DELETE /rooms/<room_id>/connections/<connection_id>": "离开房间",
            "GET /rooms/<room_id>/connections/<connection_id>/state": "获取本连接可见的状态",
            "POST /rooms/<room_id>/connections/<connection_id>/events": "提交事件",
        },
    })


@app.route("/skins", methods=["GET"])
def list_skins():
    """列出可用皮肤。"""
    config = _get_registry().config
    return jsonify({
        "default": config.default_skin,
        "skins": [skin_to_dict(skin) for skin in config.skins.values()],
    })


@app.route("/rooms", methods=["GET"])
def list_rooms():
    """列出所有房间。"""
    return jsonify({
        "rooms": [
            {
                "room_id": room.room_id,
                "num_connections": room.num_connections,
                "status": room.session.status.value,
            }
            for room in _get_registry().rooms()
        ]
    })


@app.route("/rooms/<room_id>/connections", methods=["POST"])
def join_room(room_id: str):
    """加入房间。"""
    room = _get_registry().get_or_create(room_id)
    connection_id = room.add_connection()
    return jsonify({
        "connection_id": connection_id,
        "state": room.state_for_connection(connection_id),
    }), 201


@app.route("/rooms/<room_id>/connections/<int:connection_id>", methods=["DELETE"])
def leave_room(room_id: str, connection_id: int):
    """离开房间。座位保留，可由新连接重新占用。"""
    room = _find_room(room_id)
    if room is None or not room.has_connection(connection_id):
        return jsonify({"error": "连接不存在"}), 404
    room.remove_connection(connection_id)
    return jsonify({"room_id": room_id, "num_connections": room.num_connections})


@app.route("/rooms/<room_id>/connections/<int:connection_id>/state", methods=["GET"])
def get_state(room_id: str, connection_id: int):
    """获取本连接可见的状态。"""
    room = _find_room(room_id)
    if room is None:
        return jsonify({"error": "房间不存在"}), 404
    try:
        return jsonify(room.state_for_connection(connection_id))
    except UnknownConnection:
        return jsonify({"error": "连接不存在"}), 404


@app.route("/rooms/<room_id>/connections/<int:connection_id>/events", methods=["POST"])
def post_event(room_id: str, connection_id: int):
    """提交一个房间事件，返回本连接的新状态。"""
    room = _find_room(room_id)
    if room is None:
        return jsonify({"error": "房间不存在"}), 404
    payload = request.get_json(silent=True) or {}
    try:
        refreshed = room.process_event(connection_id, payload)
        state = room.state_for_connection(connection_id)
    except UnknownConnection:
        return jsonify({"error": "连接不存在"}), 404
    except DeductionError as e:
        logger.warning("房间 %s 连接 %s 的事件被拒绝：%s", room_id, connection_id, e)
        return jsonify({"error": str(e)}), 400
    return jsonify({"refreshed": refreshed, "state": state})


def run_server(host: str = "127.0.0.1", port: int = 3001, debug: bool = False):
    """启动Web服务器。"""
    app.run(host=host, port=port, debug=debug, threaded=True)


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="推理桌游服务器")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3001)
    parser.add_argument("--skins", type=Path, default=DEFAULT_SKINS_DIR, help="皮肤目录路径")
    parser.add_argument("--seed", type=int, default=None, help="随机种子，复现用")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    config = SkinRepository(base_dir=args.skins).build_config()
    configure(RoomRegistry(config, seed=args.seed))
    run_server(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
