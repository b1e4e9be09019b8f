"""
Gift Suggestion API Endpoint

選用功能：失敗時回 503，不影響填偏好或抽籤
"""
from fastapi import APIRouter, Depends, HTTPException
from functools import lru_cache
import logging

from schemas import SuggestionRequest, SuggestionResponse
from services.gift_advisor_service import GiftAdvisorService
from core.exceptions import SecretSantaException
from api.errors import to_http_exception

router = APIRouter(prefix="/api/suggestions", tags=["suggestions"])
logger = logging.getLogger(__name__)


@lru_cache()
def get_gift_advisor() -> GiftAdvisorService:
    """整個 process 共用一個 GiftAdvisorService（和 genai.Client）"""
    return GiftAdvisorService()


@router.post("", response_model=SuggestionResponse)
def suggest_gifts(
    params: SuggestionRequest,
    advisor: GiftAdvisorService = Depends(get_gift_advisor)
):
    """
    依偏好與預算取得禮物點子

    返回：
        - suggestions: [{name, description}, ...]（最多 3 筆）
    """
    try:
        return SuggestionResponse(suggestions=advisor.suggest(params))

    except SecretSantaException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get gift suggestions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
