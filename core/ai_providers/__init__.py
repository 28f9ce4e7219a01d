"""
BlogFleet - Proveedores de IA.
"""
from core.ai_providers.base import AIProvider, AIResponse
from core.ai_providers.deepseek import DeepSeekProvider
from core.ai_providers.claude import ClaudeProvider

__all__ = ["AIProvider", "AIResponse", "DeepSeekProvider", "ClaudeProvider"]
