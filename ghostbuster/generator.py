"""Generative-text boundary: prompt in, JSON text out."""
from __future__ import annotations

from abc import ABC, abstractmethod

from ghostbuster.config import AuditSettings, load_settings
from ghostbuster.errors import ServiceError
from ghostbuster.log import get_logger

log = get_logger(__name__)


class TextGenerator(ABC):
    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the raw reply text. Raise ServiceError on failure."""

    def enabled(self) -> bool:
        return True


class GeminiGenerator(TextGenerator):
    """Gemini through its OpenAI-compatible endpoint.

    The client is built lazily so a missing key only fails the call that
    needs it, never startup. No retries: a failed audit is resubmitted by
    the user.
    """

    def __init__(self, settings: AuditSettings | None = None) -> None:
        self.settings = settings or load_settings()
        self._client = None

    def enabled(self) -> bool:
        return bool(self.settings.api_key)

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.timeout_sec,
                max_retries=0,
            )
        return self._client

    def generate(self, prompt: str) -> str:
        if not self.enabled():
            raise ServiceError(
                "GEMINI_API_KEY is not set — add it to .env to enable audits."
            )
        from openai import OpenAIError

        try:
            r = self._get_client().chat.completions.create(
                model=self.settings.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=self.settings.temperature,
            )
        except OpenAIError as exc:
            log.error("Gemini request failed: %s", exc)
            raise ServiceError(f"AI service request failed: {exc}") from exc

        if not r.choices:
            return ""
        return (r.choices[0].message.content or "").strip()


class StaticGenerator(TextGenerator):
    """Returns a canned reply; records prompts it was given."""

    def __init__(self, reply: str = "") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def get_generator(settings: AuditSettings | None = None) -> TextGenerator:
    settings = settings or load_settings()
    if not settings.api_key:
        log.info("No GEMINI_API_KEY — audits will fail until one is configured")
    return GeminiGenerator(settings)
