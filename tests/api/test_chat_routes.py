"""Tests for chat and chart API endpoints.

Tests cover:
- POST /api/chat - Text replies and strict-JSON intent extraction
- POST /api/charts - Message -> intent -> aggregation -> chart payloads

The language model is never called: the intent functions are patched where
the routes import them.
"""

from unittest.mock import patch

from survey_analytics.core.errors import LLMResponseError, LLMUnavailableError
from survey_analytics.core.intent import ChartType, DataRequest, MessageInterpretation
from survey_analytics.core.variables import VariableKey

# ============================================================================
# POST /api/chat
# ============================================================================


def test_unit_chat_textRequest_returnsReply(client):
    # Arrange
    with patch("survey_analytics.api.routes.chat.answer_question", return_value="Use a bed net.") as mock_answer:
        # Act
        response = client.post("/api/chat", json={"message": "How do I avoid malaria?"})

    # Assert
    assert response.status_code == 200
    assert response.json() == {"reply": "Use a bed net."}
    mock_answer.assert_called_once_with("How do I avoid malaria?")


def test_unit_chat_jsonRequest_returnsValidatedIntents(client):
    # Arrange
    intents = [DataRequest(diseases=["malaria"], variables=[VariableKey.AGE], chart_types=[ChartType.PIE])]
    with patch("survey_analytics.api.routes.chat.extract_intent", return_value=intents):
        # Act
        response = client.post(
            "/api/chat",
            json={"message": "Show malaria cases by age as a pie chart", "isJSONRequest": True},
        )

    # Assert
    assert response.status_code == 200
    assert response.json() == {
        "reply": [{"diseases": ["malaria"], "variables": ["age"], "chartTypes": ["pie"], "title": None}]
    }


def test_unit_chat_jsonRequestInvalidJson_returns502(client):
    # Arrange
    with patch(
        "survey_analytics.api.routes.chat.extract_intent",
        side_effect=LLMResponseError("The language model did not return valid JSON"),
    ):
        # Act
        response = client.post("/api/chat", json={"message": "Show malaria", "isJSONRequest": True})

    # Assert
    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "Invalid JSON response from AI"


def test_unit_chat_jsonRequestWrongShape_returns502(client):
    # Arrange
    with patch("survey_analytics.api.routes.chat.extract_intent", return_value=[]):
        # Act
        response = client.post("/api/chat", json={"message": "Show malaria", "isJSONRequest": True})

    # Assert
    assert response.status_code == 502


def test_unit_chat_llmUnavailable_returns503(client):
    # Arrange
    with patch(
        "survey_analytics.api.routes.chat.answer_question",
        side_effect=LLMUnavailableError("Language model unavailable for general_answer: ollama_unavailable"),
    ):
        # Act
        response = client.post("/api/chat", json={"message": "Hello"})

    # Assert
    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "Language model unavailable"


def test_unit_chat_emptyMessage_returns422(client):
    # Act
    response = client.post("/api/chat", json={"message": ""})

    # Assert
    assert response.status_code == 422


# ============================================================================
# POST /api/charts
# ============================================================================


def test_unit_charts_chartRequest_returnsChartPayload(client):
    # Arrange
    interpretation = MessageInterpretation(
        requests=[DataRequest(diseases=["malaria"], variables=[VariableKey.GENDER], chart_types=[ChartType.BAR])]
    )
    with patch("survey_analytics.api.routes.chat.interpret_message", return_value=interpretation):
        # Act
        response = client.post("/api/charts", json={"message": "Show malaria by gender"})

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["reply"] is None
    chart = body["charts"][0]
    assert chart["data"] == {"malaria": {"gender": {"Male": 2, "Female": 1}}}
    assert chart["series"] == {"gender": [{"name": "Male", "malaria": 2}, {"name": "Female", "malaria": 1}]}
    assert chart["title"] == "Malaria by Gender"
    assert chart["hasData"] is True


def test_unit_charts_noDiseases_usesAllActiveDiseases(client):
    # Arrange
    interpretation = MessageInterpretation(requests=[DataRequest(variables=[VariableKey.AGE])])
    with patch("survey_analytics.api.routes.chat.interpret_message", return_value=interpretation):
        # Act
        response = client.post("/api/charts", json={"message": "Show age for every disease"})

    # Assert
    chart = response.json()["charts"][0]
    assert chart["diseases"] == ["cholera", "malaria"]
    assert chart["data"] == {
        "cholera": {"age": {"Above 35": 1}},
        "malaria": {"age": {"Above 35": 2, "Below 35": 1}},
    }


def test_unit_charts_textReply_returnsReplyWithoutCharts(client):
    # Arrange
    interpretation = MessageInterpretation(requests=[], reply="Malaria is spread by mosquitoes.")
    with patch("survey_analytics.api.routes.chat.interpret_message", return_value=interpretation):
        # Act
        response = client.post("/api/charts", json={"message": "How is malaria spread?"})

    # Assert
    assert response.status_code == 200
    assert response.json() == {"success": True, "charts": [], "reply": "Malaria is spread by mosquitoes."}


def test_unit_charts_llmUnavailable_returns503(client):
    # Arrange
    with patch(
        "survey_analytics.api.routes.chat.interpret_message",
        side_effect=LLMUnavailableError("Language model unavailable for chart_assistant: timeout"),
    ):
        # Act
        response = client.post("/api/charts", json={"message": "Show malaria"})

    # Assert
    assert response.status_code == 503
