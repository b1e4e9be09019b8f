"""
命名服務：生成 Room Code、整理房間代碼與參加者名字

純計算邏輯，不涉及狀態轉換
"""
import random
import string

from core.exceptions import InvalidName

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6
MAX_NAME_LENGTH = 50


def generate_room_code() -> str:
    """
    生成隨機的 6 位英數房間代碼（大寫）

    範例：A7K2QZ, 9XBC0M

    注意：
    - 不檢查唯一性（由呼叫者負責）
    - 36^6 = 2,176,782,336 種可能，碰撞機率極低
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))


def normalize_code(code: str) -> str:
    """房間代碼不分大小寫：去空白後轉大寫"""
    return (code or "").strip().upper()


def clean_name(name: str) -> str:
    """
    整理參加者輸入的名字

    規則：
    - 去掉前後空白
    - 不可為空
    - 不可超過 50 字

    異常：
        InvalidName: 名字不合法
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName("Name must not be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidName(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


def name_key(name: str) -> str:
    """同房間內比對名字用的 key（不分大小寫）"""
    return name.strip().lower()
