import json
from unittest.mock import MagicMock, patch

import pytest

from api.suggestions import get_gift_advisor
from core.exceptions import AdviceUnavailable, InvalidBudget
from main import app
from schemas import GiftSuggestion, SuggestionRequest
from services.gift_advisor_service import (
    FALLBACK_SUGGESTIONS,
    GiftAdvisorService,
    build_prompt,
    parse_suggestions,
)

PARAMS = SuggestionRequest(color="紅色", occasion="辦公室", feeling="療癒", budget_min=300, budget_max=500)


def _advisor_with_client(client):
    with patch("services.gift_advisor_service.genai.Client", return_value=client):
        return GiftAdvisorService(api_key="test-key", model="test-model")


def test_fallback_without_api_key(monkeypatch):
    monkeypatch.setattr("services.gift_advisor_service.get_settings", lambda: MagicMock(
        gemini_api_key=None, gemini_model="m", max_suggestions=3
    ))
    advisor = GiftAdvisorService()

    assert advisor.client is None
    assert advisor.suggest(PARAMS) == FALLBACK_SUGGESTIONS[:3]


def test_suggest_parses_gemini_response():
    client = MagicMock()
    client.models.generate_content.return_value.text = json.dumps([
        {"name": "紅色圍巾", "description": "保暖又應景"},
        {"name": "香氛精油", "description": "辦公室也能放鬆"},
        {"name": "馬克杯", "description": "實用"},
        {"name": "多的", "description": "應該被截掉"},
    ], ensure_ascii=False)

    suggestions = _advisor_with_client(client).suggest(PARAMS)

    assert [s.name for s in suggestions] == ["紅色圍巾", "香氛精油", "馬克杯"]
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert "300" in kwargs["contents"] and "500" in kwargs["contents"]


def test_api_error_becomes_advice_unavailable():
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")

    with pytest.raises(AdviceUnavailable) as exc_info:
        _advisor_with_client(client).suggest(PARAMS)
    assert exc_info.value.retryable is True


def test_parse_accepts_code_fence():
    text = '```json\n[{"name": "卡片", "description": "手寫"}]\n```'
    assert parse_suggestions(text, 3) == [GiftSuggestion(name="卡片", description="手寫")]


def test_parse_empty_text():
    assert parse_suggestions("", 3) == []


def test_parse_malformed_payload():
    with pytest.raises(AdviceUnavailable):
        parse_suggestions('{"name": "not a list"}', 3)


def test_prompt_mentions_preferences():
    prompt = build_prompt(PARAMS, 3)
    for value in ("紅色", "辦公室", "療癒", "$300 - $500"):
        assert value in prompt


class _BrokenAdvisor:
    def suggest(self, params):
        raise AdviceUnavailable("busy")


class _StaticAdvisor:
    def suggest(self, params):
        return [GiftSuggestion(name="卡片", description="手寫")]


def test_suggestion_endpoint(client):
    app.dependency_overrides[get_gift_advisor] = lambda: _StaticAdvisor()
    response = client.post("/api/suggestions", json=PARAMS.model_dump())
    assert response.status_code == 200
    assert response.json() == {"suggestions": [{"name": "卡片", "description": "手寫"}]}


def test_suggestion_endpoint_unavailable(client):
    app.dependency_overrides[get_gift_advisor] = lambda: _BrokenAdvisor()
    response = client.post("/api/suggestions", json=PARAMS.model_dump())
    assert response.status_code == 503
    assert response.json()["detail"]["retryable"] is True


def _offline_advisor(monkeypatch):
    monkeypatch.setattr("services.gift_advisor_service.get_settings", lambda: MagicMock(
        gemini_api_key=None, gemini_model="m", max_suggestions=3
    ))
    return GiftAdvisorService()


@pytest.mark.parametrize("budget_min,budget_max", [(500, 300), (-1, 100)])
def test_suggest_rejects_invalid_budget(monkeypatch, budget_min, budget_max):
    params = PARAMS.model_copy(update={"budget_min": budget_min, "budget_max": budget_max})

    with pytest.raises(InvalidBudget):
        _offline_advisor(monkeypatch).suggest(params)


@pytest.mark.parametrize("budget_min,budget_max", [(500, 300), (-1, 100)])
def test_suggestion_endpoint_invalid_budget_is_400(client, monkeypatch, budget_min, budget_max):
    advisor = _offline_advisor(monkeypatch)
    app.dependency_overrides[get_gift_advisor] = lambda: advisor
    body = {**PARAMS.model_dump(), "budget_min": budget_min, "budget_max": budget_max}

    response = client.post("/api/suggestions", json=body)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidBudget"


def test_gift_advisor_dependency_is_shared(monkeypatch):
    factory = MagicMock()
    monkeypatch.setattr("api.suggestions.GiftAdvisorService", factory)
    get_gift_advisor.cache_clear()
    try:
        first = get_gift_advisor()
        second = get_gift_advisor()
    finally:
        get_gift_advisor.cache_clear()

    assert first is second
    factory.assert_called_once_with()
