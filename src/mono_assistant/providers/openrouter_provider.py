"""
OpenRouter provider implementation
"""

from mono_assistant.providers.compatible_drivers import OpenAICompatibleAdapter
from mono_assistant.providers.provider_manager import register_adapter


@register_adapter("openrouter")
class OpenRouterAdapter(OpenAICompatibleAdapter):
    """Adapter for OpenRouter, which routes to many upstream model vendors"""

    base_url = "https://openrouter.ai/api/v1"
    default_headers = {
        "HTTP-Referer": "https://mono-app.com",
        "X-Title": "Mono",
    }
