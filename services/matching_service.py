"""
抽籤服務：產生「不會抽到自己」的隨機配對（derangement）

純計算邏輯，不碰資料庫也不做狀態轉換。
寫入 pairings 與更新房間狀態由 PairingManager 在同一個 transaction 內完成。
"""
import random
from typing import Hashable, List, Optional, Sequence, Tuple, TypeVar

from core.exceptions import InsufficientParticipants, MatchingFailed

T = TypeVar("T", bound=Hashable)

DEFAULT_MAX_ATTEMPTS = 1000


def is_derangement(original: Sequence[T], shuffled: Sequence[T]) -> bool:
    """檢查每個位置都沒有抽到自己"""
    return all(a != b for a, b in zip(original, shuffled))


def generate_derangement(
    participant_ids: Sequence[T],
    rng: Optional[random.Random] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> List[Tuple[T, T]]:
    """
    產生一組 giver -> receiver 配對，沒有人抽到自己

    演算法（rejection sampling）：
    1. 把名單複製一份並隨機洗牌
    2. 第 i 位送禮給洗牌後的第 i 位
    3. 只要有任何一位抽到自己就整組重抽，最多 max_attempts 次

    N >= 2 時，隨機排列剛好是 derangement 的機率約 1/e（N=2 時為 1/2），
    1000 次都失敗的機率小到可以忽略。

    參數：
        participant_ids: 參加者 ID（不可重複）
        rng: 亂數產生器（測試時可傳入固定 seed）
        max_attempts: 最多重抽次數

    返回：
        [(giver_id, receiver_id), ...]，順序與 participant_ids 相同

    異常：
        InsufficientParticipants: 少於 2 人，不會嘗試抽籤
        MatchingFailed: 重抽次數用完（可以直接再呼叫一次）
    """
    givers = list(participant_ids)
    if len(givers) < 2:
        raise InsufficientParticipants(len(givers))
    if len(set(givers)) != len(givers):
        raise ValueError("participant_ids must not contain duplicates")

    rng = rng or random.Random()
    receivers = givers[:]

    for _ in range(max_attempts):
        rng.shuffle(receivers)
        if is_derangement(givers, receivers):
            return list(zip(givers, receivers))

    raise MatchingFailed(max_attempts)
