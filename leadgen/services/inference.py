"""
Inference clients — one structured-output chat request per enrichment attempt.

The provider is a strategy picked by INFERENCE_PROVIDER; the pipeline only
sees InferenceClient.infer(prompt) -> dict.
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import requests

from leadgen.config import (
    INFERENCE_PROVIDER, INFERENCE_TIMEOUT,
    OPENAI_API_KEY, OPENAI_MODEL,
    ANTHROPIC_API_KEY, ANTHROPIC_MODEL,
    OLLAMA_URL, OLLAMA_MODEL,
)

logger = logging.getLogger('services.inference')


SYSTEM_PROMPT = (
    "You are an expert Sales Engineer and B2B market analyst. "
    "You study a prospect's website and write short, specific cold outreach. "
    "Respond ONLY with a single JSON object — no prose, no Markdown."
)

INVALID_FORMAT_MESSAGE = 'Invalid inference response format'


class InferenceError(Exception):
    """Base class — any inference failure is fatal for the attempt."""


class InferenceConfigError(InferenceError):
    """Provider credential/endpoint missing; raised before any network call."""


class InferenceProviderError(InferenceError):
    """Provider answered with a non-success status or could not be reached."""

    def __init__(self, message, status=None):
        self.status = status
        super().__init__(message)


class InferenceFormatError(InferenceError):
    """Provider answered, but the body is not a JSON object."""


_FENCE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.S | re.I)


def parse_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Parse model output as a JSON object, tolerating a surrounding code fence."""
    if not text or not text.strip():
        raise InferenceFormatError(f"{INVALID_FORMAT_MESSAGE}: empty response")
    body = text.strip()
    fenced = _FENCE.match(body)
    if fenced:
        body = fenced.group(1)
    try:
        data = json.loads(body)
    except ValueError as e:
        raise InferenceFormatError(f"{INVALID_FORMAT_MESSAGE}: {e}") from e
    if not isinstance(data, dict):
        raise InferenceFormatError(f"{INVALID_FORMAT_MESSAGE}: expected an object, got {type(data).__name__}")
    return data


class InferenceClient(ABC):
    """
    Base class for provider strategies.

    Subclasses implement _complete(system, prompt) -> raw text and translate
    their SDK's errors into InferenceProviderError.
    """
    provider: str = ''
    credential_name: str = ''

    def __init__(self, model: str, timeout: int = INFERENCE_TIMEOUT):
        self.model = model
        self.timeout = timeout

    @property
    @abstractmethod
    def configured(self) -> bool:
        ...

    def ensure_configured(self):
        if not self.configured:
            raise InferenceConfigError(f"{self.credential_name} is not configured")

    @abstractmethod
    def _complete(self, system: str, prompt: str) -> str:
        ...

    def infer(self, prompt: str) -> Dict[str, Any]:
        """Send exactly one request and return the parsed JSON object."""
        self.ensure_configured()
        logger.info("Calling %s (%s), prompt %d chars", self.provider, self.model, len(prompt),
                    extra={'provider': self.provider})
        text = self._complete(SYSTEM_PROMPT, prompt)
        return parse_json_object(text)


class OpenAIInference(InferenceClient):
    provider = 'openai'
    credential_name = 'OPENAI_API_KEY'

    def __init__(self, api_key: Optional[str] = OPENAI_API_KEY, model: str = OPENAI_MODEL,
                 timeout: int = INFERENCE_TIMEOUT, client=None):
        super().__init__(model, timeout)
        self.api_key = api_key
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def _complete(self, system, prompt):
        import openai
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.4,
            )
        except openai.APIStatusError as e:
            raise InferenceProviderError(f"OpenAI error {e.status_code}: {e.message}", status=e.status_code) from e
        except openai.APIError as e:
            raise InferenceProviderError(f"OpenAI request failed: {e}") from e
        return response.choices[0].message.content


class AnthropicInference(InferenceClient):
    provider = 'anthropic'
    credential_name = 'ANTHROPIC_API_KEY'

    def __init__(self, api_key: Optional[str] = ANTHROPIC_API_KEY, model: str = ANTHROPIC_MODEL,
                 timeout: int = INFERENCE_TIMEOUT, client=None, max_tokens: int = 1500):
        super().__init__(model, timeout)
        self.api_key = api_key
        self.max_tokens = max_tokens
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self):
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def _complete(self, system, prompt):
        import anthropic
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            raise InferenceProviderError(f"Anthropic error {e.status_code}: {e.message}", status=e.status_code) from e
        except anthropic.APIError as e:
            raise InferenceProviderError(f"Anthropic request failed: {e}") from e
        return ''.join(getattr(block, 'text', '') for block in response.content)


class OllamaInference(InferenceClient):
    """Local Ollama model (development)."""
    provider = 'ollama'
    credential_name = 'OLLAMA_URL'

    def __init__(self, base_url: Optional[str] = OLLAMA_URL, model: str = OLLAMA_MODEL,
                 timeout: int = INFERENCE_TIMEOUT, session: Optional[requests.Session] = None):
        super().__init__(model, timeout)
        self.base_url = (base_url or '').rstrip('/')
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _complete(self, system, prompt):
        try:
            resp = self._session.post(
                f"{self.base_url}/api/chat",
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    "format": "json",
                    "stream": False,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise InferenceProviderError(f"Ollama request failed: {e}") from e
        if not resp.ok:
            raise InferenceProviderError(f"Ollama error {resp.status_code}: {resp.text[:200]}",
                                         status=resp.status_code)
        try:
            return resp.json()["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise InferenceFormatError(f"{INVALID_FORMAT_MESSAGE}: unexpected Ollama envelope") from e


# ── Provider registry ────────────────────────────────────────────────────────

INFERENCE_PROVIDERS: Dict[str, Type[InferenceClient]] = {
    'openai': OpenAIInference,
    'anthropic': AnthropicInference,
    'ollama': OllamaInference,
}


def build_inference_client(provider: str = INFERENCE_PROVIDER) -> InferenceClient:
    """Look up and instantiate the configured provider strategy."""
    client_cls = INFERENCE_PROVIDERS.get((provider or '').lower())
    if not client_cls:
        raise ValueError(f"Unknown INFERENCE_PROVIDER '{provider}'. "
                         f"Available: {sorted(INFERENCE_PROVIDERS)}")
    client = client_cls()
    if not client.configured:
        logger.warning("%s not set — enrichment will fail until it is configured", client.credential_name)
    return client
