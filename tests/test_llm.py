"""Tests for the completion capability and model construction."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from questgen.agents import extractor
from questgen.errors import GenerationFailure
from questgen.state import Step
from questgen.llm import (
    BoundedCompleter,
    ChatCompleter,
    Completer,
    describe_failure,
    make_chat_model,
    make_completer,
    step_timeout,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://openrouter.example/api/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestChatCompleter:
    def test_prepends_system_prompt(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content="reply"))
        conversation = [HumanMessage(content="hello")]

        text = asyncio.run(ChatCompleter(llm).complete("be brief", conversation))

        assert text == "reply"
        sent = llm.ainvoke.call_args.args[0]
        assert isinstance(sent[0], SystemMessage)
        assert sent[0].content == "be brief"
        assert sent[1:] == conversation

    def test_flattens_list_content(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content=[
            {"type": "text", "text": "# Paper"},
            {"type": "text", "text": "\n1. Q"},
        ]))

        text = asyncio.run(ChatCompleter(llm).complete("p", []))

        assert text == "# Paper\n1. Q"

    def test_auth_failure_is_described_without_credentials(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=_status_error(401))

        with pytest.raises(GenerationFailure) as exc_info:
            asyncio.run(ChatCompleter(llm).complete("p", []))

        assert "rejected the credentials" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_unknown_exception_wrapped(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(GenerationFailure, match="RuntimeError"):
            asyncio.run(ChatCompleter(llm).complete("p", []))

    def test_does_not_retry(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=_status_error(503))

        with pytest.raises(GenerationFailure):
            asyncio.run(ChatCompleter(llm).complete("p", []))

        assert llm.ainvoke.call_count == 1


class TestDescribeFailure:
    @pytest.mark.parametrize("status,expected", [
        (401, "rejected the credentials (HTTP 401)"),
        (403, "rejected the credentials (HTTP 403)"),
        (429, "rate limiting"),
        (500, "returned HTTP 500"),
    ])
    def test_status_codes(self, status, expected):
        assert expected in describe_failure(_status_error(status))

    def test_timeout(self):
        assert describe_failure(httpx.ReadTimeout("slow")) == "the model provider timed out"

    def test_builtin_timeout(self):
        assert describe_failure(TimeoutError("slow")) == "the model call timed out"

    def test_connect_error(self):
        assert "could not connect" in describe_failure(httpx.ConnectError("refused"))

    def test_sdk_status_code_attribute(self):
        exc = Exception("sdk error")
        exc.status_code = 502
        assert describe_failure(exc) == "the model provider returned HTTP 502"


class TestMakeChatModel:
    def test_openrouter(self, mock_config):
        with patch("langchain_openai.ChatOpenAI") as chat_cls:
            make_chat_model("qwen/qwq-32b:free", "sk-test")

        kwargs = chat_cls.call_args.kwargs
        assert kwargs["model"] == "qwen/qwq-32b:free"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["base_url"] == "https://openrouter.example/api/v1"
        assert kwargs["temperature"] == 0.2
        assert kwargs["default_headers"] == {"HTTP-Referer": "http://localhost:3000", "X-Title": "QuestGen"}

    def test_anthropic(self, mock_config):
        with patch("langchain_anthropic.ChatAnthropic") as chat_cls:
            make_chat_model("claude-model", "key", provider="anthropic", temperature=0.0)

        chat_cls.assert_called_once_with(model="claude-model", api_key="key", temperature=0.0)

    def test_google(self, mock_config):
        with patch("langchain_google_genai.ChatGoogleGenerativeAI") as chat_cls:
            make_chat_model("gemini-model", "key", provider="google")

        assert chat_cls.call_args.kwargs["google_api_key"] == "key"

    def test_unknown_provider(self, mock_config):
        with pytest.raises(ValueError, match="Unknown provider"):
            make_chat_model("m", "key", provider="carrier-pigeon")


class TestMakeCompleter:
    def test_defaults_from_config(self, mock_config):
        with patch("questgen.llm.make_chat_model") as factory:
            completer = make_completer(None, "sk-test")

        factory.assert_called_once_with("test/model", "sk-test", provider=None)
        assert completer.llm is factory.return_value

    def test_explicit_model(self, mock_config):
        with patch("questgen.llm.make_chat_model") as factory:
            make_completer("other/model", "sk-test", provider="google")
        factory.assert_called_once_with("other/model", "sk-test", provider="google")


class _HangingCompleter(Completer):
    def __init__(self):
        self.started = 0

    async def complete(self, system_prompt, conversation):
        self.started += 1
        await asyncio.sleep(3600)


class TestBoundedCompleter:
    def test_passes_reply_through(self, scripted):
        text = asyncio.run(BoundedCompleter(scripted(), 5).complete(extractor.SYSTEM_PROMPT, []))
        assert text.startswith("{")

    def test_times_out_any_completer(self):
        inner = _HangingCompleter()

        with pytest.raises(GenerationFailure, match="timed out after 0.01s"):
            asyncio.run(BoundedCompleter(inner, 0.01).complete("p", []))

        assert inner.started == 1

    def test_inner_timeout_reported_as_provider_failure(self, scripted):
        completer = scripted({Step.EXTRACTOR: [TimeoutError("provider timed out")]})

        with pytest.raises(GenerationFailure) as info:
            asyncio.run(BoundedCompleter(completer, 5).complete(extractor.SYSTEM_PROMPT, []))

        assert info.value.message == "the model call timed out"
        assert isinstance(info.value.__cause__, TimeoutError)

    def test_chat_model_timeout(self):
        async def _hang(messages):
            await asyncio.sleep(5)

        llm = MagicMock()
        llm.ainvoke = _hang

        with pytest.raises(GenerationFailure, match="timed out after 0.05s"):
            asyncio.run(BoundedCompleter(ChatCompleter(llm), 0.05).complete("p", []))

    def test_step_timeout_defaults_to_config(self, mock_config):
        assert step_timeout() == 5
        assert step_timeout(0.5) == 0.5
