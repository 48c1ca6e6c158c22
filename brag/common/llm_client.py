"""
Text generation capability used by the statement generator.

The backend is a black box: generate(prompt, options) returns either
ok=True with text or ok=False with an error message. It never raises, and
every request carries a hard timeout, so callers can always fall back.

Usage:
    generator = LangChainTextGenerator()
    result = generator.generate(prompt, GenerationOptions(temperature=0.5, max_tokens=2000))
    if result.ok:
        data = try_parse_llm_json(result.text)
"""

import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from tenacity import Retrying, stop_after_attempt, wait_exponential

from brag.common.config import Config
from brag.common.logger import get_logger


@dataclass(frozen=True)
class GenerationOptions:
    """Options for a single generation request."""

    temperature: float = 0.3
    max_tokens: int = 1500
    system_prompt: Optional[str] = None


@dataclass
class GenerationResult:
    """
    Result of a text generation request.

    Attributes:
        ok: Whether the backend produced text
        text: Response text (empty when ok is False)
        error_message: Why the request failed (None when ok is True)
        duration_ms: Wall clock time including retries
        model: Model identifier used for the request
    """

    ok: bool
    text: str = ""
    error_message: Optional[str] = None
    duration_ms: int = 0
    model: Optional[str] = None

    @classmethod
    def failure(cls, message: str, duration_ms: int = 0, model: Optional[str] = None) -> "GenerationResult":
        return cls(ok=False, text="", error_message=message, duration_ms=duration_ms, model=model)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TextGenerator(Protocol):
    """Anything that can turn a prompt into text without raising."""

    def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        ...


class LangChainTextGenerator:
    """
    TextGenerator backed by an OpenAI-compatible chat endpoint (Ollama by default).

    Each attempt is bounded by a hard client timeout; transient failures are
    retried with exponential backoff up to max_attempts. Exhausted retries
    turn into GenerationResult.failure instead of an exception.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_wait: Any = None,
    ):
        """
        Initialize the generator.

        Args:
            model: Model name (defaults to Config.LLM_MODEL)
            base_url: OpenAI-compatible endpoint (defaults to Config.LLM_BASE_URL)
            api_key: API key (defaults to Config.LLM_API_KEY; Ollama ignores it)
            timeout_seconds: Hard per-request timeout (defaults to Config.LLM_TIMEOUT_SECONDS)
            max_attempts: Attempts before giving up (defaults to Config.LLM_MAX_ATTEMPTS)
            retry_wait: tenacity wait strategy (defaults to exponential 1-4s)
        """
        self.model = model or Config.LLM_MODEL
        self.base_url = base_url or Config.LLM_BASE_URL
        self.api_key = api_key or Config.LLM_API_KEY
        self.timeout_seconds = timeout_seconds or Config.LLM_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or Config.LLM_MAX_ATTEMPTS
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=4)
        self._logger = get_logger(__name__, component="llm")

    def _build_llm(self, options: GenerationOptions) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.model,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            max_retries=0,  # retries are handled by tenacity below
        )

    def _invoke(self, llm: ChatOpenAI, prompt: str, options: GenerationOptions) -> str:
        messages = []
        if options.system_prompt:
            messages.append(SystemMessage(content=options.system_prompt))
        messages.append(HumanMessage(content=prompt))

        response = llm.invoke(messages)
        content = response.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return content or ""

    def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        """
        Generate text for a prompt.

        Returns:
            GenerationResult; never raises
        """
        started = time.monotonic()
        try:
            llm = self._build_llm(options)
            retrying = Retrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.retry_wait,
                reraise=True,
            )
            text = retrying(self._invoke, llm, prompt, options)
        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            self._logger.warning(
                f"Generation failed after {self.max_attempts} attempt(s) "
                f"({duration_ms}ms): {type(e).__name__}: {e}"
            )
            return GenerationResult.failure(
                f"Request failed: {e}. Is the model server running at {self.base_url}?",
                duration_ms=duration_ms,
                model=self.model,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        self._logger.debug(f"Generated {len(text)} chars in {duration_ms}ms with {self.model}")
        return GenerationResult(ok=True, text=text, duration_ms=duration_ms, model=self.model)


class UnavailableTextGenerator:
    """TextGenerator that always fails; used for offline runs."""

    def __init__(self, reason: str = "Text generation disabled (offline mode)"):
        self.reason = reason

    def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        return GenerationResult.failure(self.reason)
