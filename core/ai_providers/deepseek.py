"""
BlogFleet - Proveedor DeepSeek.
API compatible con OpenAI: generación masiva de borradores a bajo costo.
"""
import logging
from openai import AsyncOpenAI

from core.ai_providers.base import AIProvider, AIResponse
from config import get_settings

logger = logging.getLogger(__name__)


class DeepSeekProvider(AIProvider):
    """DeepSeek vía la librería openai (solo cambian base_url y api_key)."""

    nombre = "DeepSeek V3.2"
    proveedor_id = "deepseek"

    # Precios por 1M tokens (USD, cache miss)
    PRECIOS = {"input": 0.28, "output": 0.42}

    def __init__(self, model: str = "deepseek-chat", timeout: float = 120.0):
        settings = get_settings()
        self.model = model
        self.client = AsyncOpenAI(
            api_key=settings.deepseek_api_key,
            base_url=settings.deepseek_base_url,
            timeout=timeout,
        )

    async def generate(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 4000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> AIResponse:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        params = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**params)
        except Exception as e:
            logger.error("[DeepSeek] Error: %s", e)
            return self._fallo(self.model, e)

        tokens_input = response.usage.prompt_tokens if response.usage else 0
        tokens_output = response.usage.completion_tokens if response.usage else 0
        costo = self._costo(tokens_input, tokens_output, self.PRECIOS)

        logger.info(
            "[DeepSeek] Generado: %d in + %d out = $%.4f USD",
            tokens_input, tokens_output, costo,
        )
        return AIResponse(
            contenido=response.choices[0].message.content or "",
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            costo_usd=costo,
            modelo=self.model,
            proveedor=self.proveedor_id,
        )
