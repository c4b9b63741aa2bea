"""Completion capability: the only way Agent Steps reach a language model.

``Completer.complete(system_prompt, conversation)`` is the whole contract the
graph depends on. ``ChatCompleter`` adapts a LangChain chat model to it;
``BoundedCompleter`` puts a per-call timeout around any completer, and the
executor wraps every run's completer in one. Failures surface as
``GenerationFailure``; nothing here retries.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import httpx
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage

from questgen.config import get_config
from questgen.errors import GenerationFailure
from questgen.utils.parsing import message_text

logger = logging.getLogger(__name__)

PROVIDERS = ("openrouter", "anthropic", "google")


class Completer(ABC):
    """Abstract completion capability."""

    @abstractmethod
    async def complete(self, system_prompt: str, conversation: list[BaseMessage]) -> str:
        """Return the assistant text for ``conversation`` under ``system_prompt``."""


def describe_failure(exc: BaseException) -> str:
    """Short, credential-free description of a failed model call."""
    if isinstance(exc, httpx.TimeoutException):
        return "the model provider timed out"
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return "the model call timed out"
    if isinstance(exc, httpx.ConnectError):
        return "could not connect to the model provider"
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return f"the model provider rejected the credentials (HTTP {status})"
        if status == 429:
            return "the model provider is rate limiting requests (HTTP 429)"
        return f"the model provider returned HTTP {status}"
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return f"the model provider returned HTTP {status}"
    return f"{type(exc).__name__} from the model provider"


class ChatCompleter(Completer):
    """Completer backed by a LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    async def complete(self, system_prompt: str, conversation: list[BaseMessage]) -> str:
        messages = [SystemMessage(content=system_prompt), *conversation]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as exc:
            logger.warning("Model call failed: %r", exc)
            raise GenerationFailure(describe_failure(exc)) from exc
        return message_text(response.content)


class BoundedCompleter(Completer):
    """Wraps another completer so each call gives up after ``timeout`` seconds.

    ``timeout=None`` leaves calls unbounded.
    """

    def __init__(self, inner: Completer, timeout: float | None):
        self.inner = inner
        self.timeout = timeout

    async def _call(self, system_prompt: str, conversation: list[BaseMessage]) -> str:
        # Timeouts raised by the inner completer are its own failure, not ours.
        try:
            return await self.inner.complete(system_prompt, conversation)
        except (TimeoutError, asyncio.TimeoutError) as exc:
            raise GenerationFailure(describe_failure(exc)) from exc

    async def complete(self, system_prompt: str, conversation: list[BaseMessage]) -> str:
        try:
            return await asyncio.wait_for(
                self._call(system_prompt, conversation), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise GenerationFailure(f"model call timed out after {self.timeout:g}s") from exc


def step_timeout(timeout: float | None = None) -> float | None:
    """The per-step bound: ``timeout`` if given, else the configured default."""
    if timeout is None:
        return get_config().get("step_timeout_seconds", 120)
    return timeout


def make_chat_model(
    model_id: str,
    credential: str,
    provider: str | None = None,
    temperature: float | None = None,
) -> BaseChatModel:
    """Construct the LangChain chat model for ``provider``.

    Provider classes are imported lazily so a deployment only needs the
    integration it actually uses.
    """
    config = get_config()
    provider = provider or config.get("provider", "openrouter")
    if temperature is None:
        temperature = config.get("temperature", 0.6)

    if provider == "openrouter":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model_id,
            api_key=credential,
            base_url=config.get("openrouter_api_base"),
            temperature=temperature,
            default_headers={
                "HTTP-Referer": config.get("site_url", "http://localhost:3000"),
                "X-Title": config.get("site_name", "QuestGen"),
            },
        )
    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(model=model_id, api_key=credential, temperature=temperature)
    if provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=model_id, google_api_key=credential, temperature=temperature
        )

    raise ValueError(f"Unknown provider '{provider}'. Must be one of: {PROVIDERS}")


def make_completer(
    model_id: str | None,
    credential: str,
    provider: str | None = None,
) -> ChatCompleter:
    """Build a per-run completer from a model id and credential.

    The per-step timeout is applied by the executor, not here.
    """
    model_id = model_id or get_config()["default_model"]
    llm = make_chat_model(model_id, credential, provider=provider)
    logger.info("Using model %s", model_id)
    return ChatCompleter(llm)
