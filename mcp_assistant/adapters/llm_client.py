"""
Text generation with OpenAI, falling back to a local Ollama server.
"""

import logging
from typing import Optional

import requests
from openai import OpenAI, OpenAIError

from ..config import LLMConfig
from ..domain.exceptions import LLMError

logger = logging.getLogger(__name__)


class AnswerGenerator:
    """
    Routes a prompt to OpenAI if an API key is configured, otherwise to Ollama.

    Returns a single text string.
    """

    def __init__(self, config: LLMConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or requests.Session()

    @property
    def backend(self) -> str:
        return "openai" if self.config.openai_api_key else "ollama"

    def generate(self, prompt: str) -> str:
        """
        Raises:
            LLMError: If the selected backend fails
        """
        if self.config.openai_api_key:
            return self._generate_openai(prompt)
        return self._generate_ollama(prompt)

    def _generate_openai(self, prompt: str) -> str:
        client = OpenAI(api_key=self.config.openai_api_key, timeout=self.config.request_timeout)
        try:
            response = client.chat.completions.create(
                model=self.config.openai_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.config.temperature,
            )
        except OpenAIError as exc:
            raise LLMError(f"OpenAI error: {exc}") from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _generate_ollama(self, prompt: str) -> str:
        url = f"{self.config.local_model_url.rstrip('/')}/api/generate"
        payload = {"model": self.config.local_model, "prompt": prompt, "stream": False}
        logger.debug("Sending prompt to Ollama at %s", url)

        try:
            response = self._session.post(url, json=payload, timeout=self.config.request_timeout)
        except requests.exceptions.RequestException as exc:
            raise LLMError(f"Ollama unreachable at {url}: {exc}") from exc

        if not response.ok:
            raise LLMError(f"Ollama error: {response.status_code} {response.reason}")

        return response.json().get("response") or ""
