"""
禮物建議服務：用 Gemini 根據偏好與預算給出禮物點子

這是選用的外部服務：
- 沒有設定 GEMINI_API_KEY 時回傳固定的預設建議
- API 呼叫失敗時拋出 AdviceUnavailable（前端可以稍後再試）
- 核心流程（填偏好、抽籤）完全不依賴這個服務
"""
from typing import List, Optional
import json
import logging

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from core.exceptions import AdviceUnavailable
from core.room_manager import validate_budget
from database import get_settings
from schemas import GiftSuggestion, SuggestionRequest

logger = logging.getLogger(__name__)

FALLBACK_SUGGESTIONS = [
    GiftSuggestion(name="手作卡片", description="充滿心意與溫度的經典選擇。"),
    GiftSuggestion(name="香氛蠟燭", description="適合各種場合的安全牌。"),
    GiftSuggestion(name="保溫杯", description="實用又不容易踩雷。"),
]

_suggestion_list = TypeAdapter(List[GiftSuggestion])


def build_prompt(params: SuggestionRequest, count: int) -> str:
    return (
        "情境: 聖誕節交換禮物活動 (Secret Santa)。\n"
        "使用者偏好:\n"
        f"- 喜歡的色系: {params.color}\n"
        f"- 使用場合/情境: {params.occasion}\n"
        f"- 感覺/風格 (Vibe): {params.feeling}\n"
        f"- 預算範圍: ${params.budget_min} - ${params.budget_max}\n\n"
        f"任務: 根據上述條件，建議 {count} 個具體、有創意且符合預算的禮物點子。\n"
        "每個點子包含 name（禮物名稱）與 description（推薦原因，20 字以內）。\n"
        "回應格式: 請回傳 JSON 陣列。\n"
        "語言: 繁體中文 (Traditional Chinese, Taiwan)。"
    )


def parse_suggestions(text: str, limit: int) -> List[GiftSuggestion]:
    """
    解析 Gemini 回傳的 JSON

    容許 ```json 區塊包起來的回應；格式不對時拋出 AdviceUnavailable
    """
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()
    if not cleaned:
        return []

    try:
        suggestions = _suggestion_list.validate_python(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise AdviceUnavailable(f"Malformed suggestion payload: {e}") from e
    return suggestions[:limit]


class GiftAdvisorService:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.limit = settings.max_suggestions
        self.client = genai.Client(api_key=self.api_key) if self.api_key else None

    def suggest(self, params: SuggestionRequest) -> List[GiftSuggestion]:
        """
        取得禮物建議

        參數：
            params: 色系 / 場合 / 感覺 / 預算

        返回：
            最多 max_suggestions 筆 GiftSuggestion

        異常：
            InvalidBudget: 預算不合法
            AdviceUnavailable: Gemini 呼叫失敗或回傳格式錯誤
        """
        validate_budget(params.budget_min, params.budget_max)

        if not self.client:
            logger.warning("GEMINI_API_KEY not set, returning fallback suggestions")
            return FALLBACK_SUGGESTIONS[:self.limit]

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(params, self.limit),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=list[GiftSuggestion],
                ),
            )
        except Exception as e:
            logger.error(f"Gemini API error: {e}", exc_info=True)
            raise AdviceUnavailable("Gift suggestions are unavailable right now") from e

        return parse_suggestions(response.text, self.limit)
