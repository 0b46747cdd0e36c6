"""
Groq provider implementation
"""

from mono_assistant.providers.compatible_drivers import OpenAICompatibleAdapter
from mono_assistant.providers.provider_manager import register_adapter


@register_adapter("groq")
class GroqAdapter(OpenAICompatibleAdapter):
    """Adapter for the Groq API (chat and Whisper transcription)"""

    base_url = "https://api.groq.com/openai/v1"
