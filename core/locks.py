"""
並發控制工具

兩層鎖：
1. Process 內的 room_mutex：同一個房間的寫入操作依序執行
   （SQLite 不支援 SELECT ... FOR UPDATE，只靠 DB 鎖不夠）
2. Database-level 的行級鎖：with_room_lock 使用 SELECT ... FOR UPDATE，
   在 PostgreSQL 上跨 process 也能防止競態條件（Race Condition）

使用順序：先取得 room_mutex，再在同一個 transaction 內呼叫 with_room_lock，
commit 之後才釋放 room_mutex。
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from sqlalchemy.orm import Session, Query

from models import Room

# 建立房間時，「檢查代碼是否重複 + 寫入」必須是一個原子操作
creation_mutex = threading.Lock()

_registry_guard = threading.Lock()
_room_mutexes: Dict[str, threading.Lock] = {}


def _mutex_for(room_id: str) -> threading.Lock:
    with _registry_guard:
        mutex = _room_mutexes.get(room_id)
        if mutex is None:
            mutex = threading.Lock()
            _room_mutexes[room_id] = mutex
        return mutex


@contextmanager
def room_mutex(room_id: str) -> Iterator[None]:
    """
    鎖定一個房間（process 內互斥）

    使用場景：
    - 加入房間（名字唯一性 + 鎖定檢查）
    - 鎖定房間、抽籤、揭曉
    - 更新偏好

    範例：
        room = room_store.get_room(db, room_id)   # 不存在就拋出 RoomNotFound
        with room_mutex(room.id):
            RoomManager._lock_room(db, room.id)   # @transactional，離開前 commit

    注意：
        - 不可重入，同一個 thread 不要巢狀取得同一個房間的鎖
        - 先確認房間存在再取鎖，registry 只會有真正存在的房間
    """
    mutex = _mutex_for(str(room_id))
    with mutex:
        yield


def with_room_lock(room_id: str, db: Session) -> Query:
    """
    鎖定一個 Room（行級鎖）

    使用場景：
    - 修改 Room 狀態時
    - 需要確保 Room 在整個 transaction 期間不被其他請求修改

    範例：
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)
        room.stage = RoomStage.MATCHED

    參數：
        room_id: Room 的 id
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 或 .one() 來取得結果）

    注意：
        - nowait=False 表示如果鎖被佔用，會等待
        - populate_existing 確保拿到的是鎖定後的最新資料，而不是 session 內的舊快取
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(Room).filter(
        Room.id == room_id
    ).populate_existing().with_for_update(nowait=False)
