"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

分類：
- NotFoundError：資料不存在（修正輸入前重試無意義）
- ConflictError：與目前狀態衝突（房間已鎖定、代碼碰撞、狀態不允許）
- ValidationError：輸入格式錯誤（預算、名字）
- AuthenticationError：主持人身分驗證失敗
- MatchingError：抽籤失敗（人數不足 / 重抽次數用完）
"""


class SecretSantaException(Exception):
    """所有業務異常的基類"""
    retryable = False


class NotFoundError(SecretSantaException):
    pass


class ConflictError(SecretSantaException):
    pass


class ValidationError(SecretSantaException):
    pass


class AuthenticationError(SecretSantaException):
    pass


class MatchingError(SecretSantaException):
    pass


# ============ Room 相關異常 ============

class RoomNotFound(NotFoundError):
    """房間不存在（room_id 或房間代碼）"""
    def __init__(self, room_id=None, code=None):
        self.room_id = room_id
        self.code = code
        if code is not None:
            super().__init__(f"Room with code {code} not found")
        else:
            super().__init__(f"Room {room_id} not found")


class RoomLocked(ConflictError):
    """房間已鎖定，不接受新名字加入（既有名字仍可重連）"""
    def __init__(self, code, name):
        self.code = code
        self.name = name
        super().__init__(
            f"Room {code} is locked; {name!r} is not a participant and cannot join"
        )


class RoomCodeConflict(ConflictError):
    """房間代碼已被使用"""
    def __init__(self, code):
        self.code = code
        super().__init__(f"Room code {code} is already in use")


class RoomCodeExhausted(ConflictError):
    """重新產生房間代碼的次數用完，可以稍後再試"""
    retryable = True

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique room code after {attempts} attempts")


class InvalidBudget(ValidationError):
    """預算範圍不合法（必須 0 <= min <= max）"""
    def __init__(self, budget_min, budget_max):
        self.budget_min = budget_min
        self.budget_max = budget_max
        super().__init__(
            f"Invalid budget range {budget_min}-{budget_max}: "
            f"both must be non-negative and min must not exceed max"
        )


class InvalidName(ValidationError):
    """名字是空的或太長"""
    pass


# ============ 狀態轉換異常 ============

class InvalidStateTransition(ConflictError):
    """非法的狀態轉換"""
    pass


# ============ Participant 相關異常 ============

class ParticipantNotFound(NotFoundError):
    """參加者不存在"""
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class ParticipantNameConflict(ConflictError):
    """同一個房間內已有同名參加者（不分大小寫）"""
    def __init__(self, room_id, name):
        self.room_id = room_id
        self.name = name
        super().__init__(f"Name {name!r} is already taken in room {room_id}")


class HostVerificationFailed(AuthenticationError):
    """主持人姓名驗證失敗"""
    def __init__(self, code):
        self.code = code
        super().__init__(f"Host name does not match for room {code}")


# ============ 抽籤相關異常 ============

class InsufficientParticipants(MatchingError):
    """人數不足（至少需要 2 人才能抽籤）"""
    def __init__(self, count):
        self.count = count
        super().__init__(f"Need at least 2 participants to draw, got {count}")


class MatchingFailed(MatchingError):
    """重抽次數用完仍然抽到自己，可以直接再試一次"""
    retryable = True

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(f"No valid draw found after {attempts} attempts")


# ============ 禮物建議 ============

class AdviceUnavailable(SecretSantaException):
    """禮物建議服務暫時無法使用"""
    retryable = True
