"""
Unit tests for brag/common/llm_client.py

ChatOpenAI is mocked; no request leaves the process.
"""

from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import HumanMessage, SystemMessage
from tenacity import wait_none

from brag.common.llm_client import (
    GenerationOptions,
    GenerationResult,
    LangChainTextGenerator,
    UnavailableTextGenerator,
)


@pytest.fixture
def mock_chat():
    with patch("brag.common.llm_client.ChatOpenAI") as mock_cls:
        yield mock_cls


def make_generator(max_attempts: int = 2) -> LangChainTextGenerator:
    return LangChainTextGenerator(
        model="llama3",
        base_url="http://localhost:11434/v1",
        api_key="ollama",
        timeout_seconds=7,
        max_attempts=max_attempts,
        retry_wait=wait_none(),
    )


class TestLangChainTextGenerator:
    """Tests for LangChainTextGenerator."""

    def test_success_returns_text(self, mock_chat):
        mock_chat.return_value.invoke.return_value = MagicMock(content='{"a": 1}')

        result = make_generator().generate("prompt", GenerationOptions(temperature=0.5, max_tokens=2000))

        assert result.ok is True
        assert result.text == '{"a": 1}'
        assert result.model == "llama3"

    def test_client_built_with_timeout_and_no_client_retries(self, mock_chat):
        mock_chat.return_value.invoke.return_value = MagicMock(content="ok")

        make_generator().generate("prompt", GenerationOptions(temperature=0.4, max_tokens=800))

        kwargs = mock_chat.call_args.kwargs
        assert kwargs["timeout"] == 7
        assert kwargs["max_retries"] == 0
        assert kwargs["temperature"] == 0.4
        assert kwargs["max_tokens"] == 800
        assert kwargs["base_url"] == "http://localhost:11434/v1"

    def test_system_prompt_sent_first(self, mock_chat):
        mock_chat.return_value.invoke.return_value = MagicMock(content="ok")

        make_generator().generate("user text", GenerationOptions(system_prompt="be careful"))

        messages = mock_chat.return_value.invoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "be careful"
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "user text"

    def test_no_system_prompt(self, mock_chat):
        mock_chat.return_value.invoke.return_value = MagicMock(content="ok")

        make_generator().generate("user text", GenerationOptions())

        messages = mock_chat.return_value.invoke.call_args.args[0]
        assert len(messages) == 1

    def test_retries_then_succeeds(self, mock_chat):
        mock_chat.return_value.invoke.side_effect = [TimeoutError("slow"), MagicMock(content="ok")]

        result = make_generator(max_attempts=2).generate("prompt", GenerationOptions())

        assert result.ok is True
        assert mock_chat.return_value.invoke.call_count == 2

    def test_exhausted_retries_become_failure(self, mock_chat):
        mock_chat.return_value.invoke.side_effect = ConnectionError("refused")

        result = make_generator(max_attempts=3).generate("prompt", GenerationOptions())

        assert result.ok is False
        assert "refused" in result.error_message
        assert result.text == ""
        assert mock_chat.return_value.invoke.call_count == 3

    def test_list_content_is_joined(self, mock_chat):
        mock_chat.return_value.invoke.return_value = MagicMock(content=[{"text": "he"}, "llo"])

        result = make_generator().generate("prompt", GenerationOptions())

        assert result.text == "hello"


class TestUnavailableTextGenerator:
    """Tests for UnavailableTextGenerator."""

    def test_always_fails(self):
        result = UnavailableTextGenerator("offline").generate("prompt", GenerationOptions())
        assert result == GenerationResult(ok=False, text="", error_message="offline")
