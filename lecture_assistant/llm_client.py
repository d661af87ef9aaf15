"""
Chat-completion client for Groq with OpenRouter fallback
"""
from typing import Dict, List, Optional, Tuple

import requests

from .config import LLM_PROVIDERS, SUMMARY_MODELS, PipelineSettings
from .errors import LLMRequestError
from .logger import setup_logger

logger = setup_logger(__name__)

SYSTEM_PROMPT = (
    "You are an expert educational assistant and academic tutor. "
    "You always answer in clear academic English and, when asked for JSON, "
    "return only valid JSON."
)

# Special tokens some open models leak into completions
MODEL_ARTIFACTS = [
    '<｜begin▁of▁sentence｜>',
    '<|begin_of_sentence|>',
    '<｜end▁of▁sentence｜>',
    '<|end_of_sentence|>',
    '<|im_start|>',
    '<|im_end|>',
]


def clean_completion(text: str) -> str:
    """
    Clean up model output by removing artifacts.

    Args:
        text: Raw completion text

    Returns:
        str: Cleaned text
    """
    for artifact in MODEL_ARTIFACTS:
        text = text.replace(artifact, '')

    text = '\n'.join(line.strip() for line in text.split('\n'))
    return text.strip()


def split_model_name(model: str) -> Tuple[str, str]:
    """Split ``provider:model`` into its parts; bare names default to Groq."""
    for provider in LLM_PROVIDERS:
        prefix = f"{provider}:"
        if model.startswith(prefix):
            return provider, model[len(prefix):]
    return 'groq', model


class ChatClient:
    """Send single-turn prompts to a chat-completion API"""

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or PipelineSettings()
        self.api_keys = {
            'groq': self.settings.groq_api_key,
            'openrouter': self.settings.openrouter_api_key,
        }
        self.provider, self.model = split_model_name(self.settings.summary_model)
        self.max_tokens = SUMMARY_MODELS.get(self.settings.summary_model, {}).get('max_tokens', 4096)

    def _providers_to_try(self) -> List[Tuple[str, str]]:
        providers = [(self.provider, self.model)]
        for name, provider_config in LLM_PROVIDERS.items():
            if name != self.provider and self.api_keys.get(name):
                providers.append((name, provider_config['default_model']))
        return providers

    def complete(self, prompt: str, system: str = SYSTEM_PROMPT, max_tokens: Optional[int] = None) -> str:
        """
        Send a prompt and return the completion text.

        The configured provider is tried first, then any other provider with
        an API key. Each provider gets exactly one attempt.

        Raises:
            LLMRequestError: if every provider failed
        """
        last_error = None

        for provider, model in self._providers_to_try():
            try:
                return self._call_api_provider(provider, model, prompt, system, max_tokens or self.max_tokens)
            except LLMRequestError as e:
                last_error = e.message
                logger.warning(f"{provider.title()} failed: {last_error}")

        raise LLMRequestError(f"All API providers failed. Last error: {last_error}")

    def _call_api_provider(self, provider: str, model: str, prompt: str, system: str, max_tokens: int) -> str:
        """
        Call a specific API provider (Groq or OpenRouter).

        Args:
            provider: 'groq' or 'openrouter'
            model: Model identifier
            prompt: The user prompt
            system: The system prompt
            max_tokens: Completion token limit

        Returns:
            str: Cleaned completion text
        """
        api_key = self.api_keys.get(provider)
        if not api_key:
            raise LLMRequestError(f"{provider.title()} API key not found")

        headers: Dict[str, str] = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }
        if provider == 'openrouter':
            headers["X-Title"] = "Lecture Assistant"

        logger.info(f"Calling {provider.title()} API with model: {model}")

        try:
            response = requests.post(
                url=LLM_PROVIDERS[provider]['api_url'],
                headers=headers,
                json={
                    "model": model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt}
                    ],
                    "temperature": self.settings.temperature,
                    "max_tokens": max_tokens
                },
                timeout=self.settings.request_timeout_seconds
            )
        except requests.Timeout:
            raise LLMRequestError(
                f"{provider.title()} request timed out after {self.settings.request_timeout_seconds} seconds"
            )
        except requests.RequestException as e:
            raise LLMRequestError(f"Error calling {provider.title()}: {str(e)}")

        if response.status_code != 200:
            raise LLMRequestError(f"API error {response.status_code}: {response.text[:300]}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise LLMRequestError(f"{provider.title()} returned an unexpected response body")

        return clean_completion(content or "")
