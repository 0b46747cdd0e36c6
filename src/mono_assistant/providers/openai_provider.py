"""
OpenAI provider implementation
"""

from mono_assistant.providers.compatible_drivers import OpenAICompatibleAdapter
from mono_assistant.providers.provider_manager import register_adapter
from mono_assistant.providers.types import ChatParameters

DEFAULT_MAX_TOKENS = 4096


@register_adapter("openai")
class OpenAIAdapter(OpenAICompatibleAdapter):
    """Adapter for the OpenAI API"""

    base_url = "https://api.openai.com/v1"

    async def _chat_completion(
        self, api_key: str, prompt: str, model: str, params: ChatParameters
    ) -> str:
        # OpenAI responses are capped unless the caller asked for a limit
        if params.max_tokens is None:
            params = params.model_copy(update={"max_tokens": DEFAULT_MAX_TOKENS})
        return await super()._chat_completion(api_key, prompt, model, params)
