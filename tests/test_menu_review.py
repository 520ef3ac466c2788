"""Unit tests for the vision model client, with the OpenAI SDK mocked out."""

import base64
from typing import Any, Iterator
from unittest.mock import MagicMock, patch

import pytest

import services.menu_review as menu_review
from services.errors import CollaboratorCallFailed


def _completion(text: str) -> Any:
    resp = MagicMock()
    resp.choices = [MagicMock(message=MagicMock(content=text))]
    return resp


@pytest.fixture
def mock_openai() -> Iterator[Any]:
    with patch("services.menu_review.OpenAI") as mock:
        yield mock


def test_sends_image_as_data_url(mock_openai):
    create = mock_openai.return_value.chat.completions.create
    create.return_value = _completion('  {"summary": "ok"}  ')

    out = menu_review.analyze_menu_image(b"\xff\xd8jpeg", "image/jpeg", "analyze please")

    assert out == '{"summary": "ok"}'
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == menu_review.REVIEW_MODEL
    assert kwargs["max_tokens"] == menu_review.MAX_TOKENS
    user = kwargs["messages"][1]["content"]
    expected_url = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()
    assert user[0] == {"type": "image_url", "image_url": {"url": expected_url}}
    assert user[1] == {"type": "text", "text": "analyze please"}


def test_client_gets_explicit_timeout(mock_openai, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    mock_openai.return_value.chat.completions.create.return_value = _completion("{}")
    menu_review.analyze_menu_image(b"x", "image/png", "p")
    assert mock_openai.call_args.kwargs["timeout"] == menu_review.COLLABORATOR_TIMEOUT_S
    assert mock_openai.call_args.kwargs["api_key"] == "sk-test"


def test_falls_back_to_second_model(mock_openai, monkeypatch):
    monkeypatch.setattr(menu_review, "REVIEW_MODEL", "primary")
    monkeypatch.setattr(menu_review, "FALLBACK_MODEL", "backup")
    create = mock_openai.return_value.chat.completions.create
    create.side_effect = [RuntimeError("overloaded"), _completion("prose")]

    assert menu_review.analyze_menu_image(b"x", "image/png", "p") == "prose"
    assert [c.kwargs["model"] for c in create.call_args_list] == ["primary", "backup"]


def test_all_models_failing_raises(mock_openai):
    mock_openai.return_value.chat.completions.create.side_effect = TimeoutError("slow")
    with pytest.raises(CollaboratorCallFailed, match="slow"):
        menu_review.analyze_menu_image(b"x", "image/png", "p")


def test_missing_api_key(mock_openai, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(CollaboratorCallFailed, match="OPENAI_API_KEY"):
        menu_review.analyze_menu_image(b"x", "image/png", "p")
    mock_openai.assert_not_called()


def test_none_content_is_empty_text(mock_openai):
    mock_openai.return_value.chat.completions.create.return_value = _completion(None)
    assert menu_review.analyze_menu_image(b"x", "image/png", "p") == ""
