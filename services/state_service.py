"""
狀態版本服務：短輪詢用的 state_version

任何會改變房間畫面的寫入都要呼叫 bump_state_version，
前端每隔幾秒呼叫 GET /state，版本沒變就不需要重新渲染。
"""
import logging

from models import Room

logger = logging.getLogger(__name__)


def bump_state_version(room: Room, reason: str = "") -> int:
    """
    房間 state_version + 1

    參數：
        room: Room（交由外層 transaction 處理 commit）
        reason: 變更原因（只用於 debug log）

    返回：
        新的 state_version
    """
    room.state_version = (room.state_version or 0) + 1
    logger.debug(f"Room {room.id} state_version -> {room.state_version} ({reason})")
    return room.state_version
