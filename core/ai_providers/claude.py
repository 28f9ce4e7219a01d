"""
BlogFleet - Proveedor Claude (Anthropic).
Usado para la pasada de mejora y como fallback de la generación.
"""
import logging
from anthropic import AsyncAnthropic

from core.ai_providers.base import AIProvider, AIResponse
from config import get_settings

logger = logging.getLogger(__name__)


class ClaudeProvider(AIProvider):
    """Claude vía la librería oficial de Anthropic."""

    nombre = "Claude (Anthropic)"
    proveedor_id = "claude"

    # Precios por 1M tokens (USD)
    PRECIOS = {
        "claude-haiku-4-5-20251001": {"input": 1.00, "output": 5.00},
        "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
    }

    MODELOS = {
        "haiku": "claude-haiku-4-5-20251001",
        "sonnet": "claude-sonnet-4-5-20250929",
    }

    def __init__(self, model: str = "haiku", timeout: float = 180.0):
        settings = get_settings()
        self.model = self.MODELOS.get(model, model)
        self.client = AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=timeout)

    async def generate(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> AIResponse:
        if json_mode:
            # Anthropic no tiene modo JSON: se pide en las instrucciones
            system = (system + "\n\nResponde ÚNICAMENTE con un objeto JSON válido.").strip()

        params = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            params["system"] = system

        try:
            response = await self.client.messages.create(**params)
        except Exception as e:
            logger.error("[Claude] Error: %s", e)
            return self._fallo(self.model, e)

        tokens_input = response.usage.input_tokens
        tokens_output = response.usage.output_tokens
        precios = self.PRECIOS.get(self.model, {"input": 3.00, "output": 15.00})
        costo = self._costo(tokens_input, tokens_output, precios)
        contenido = "".join(block.text for block in response.content if block.type == "text")

        logger.info(
            "[Claude/%s] Generado: %d in + %d out = $%.4f USD",
            self.model, tokens_input, tokens_output, costo,
        )
        return AIResponse(
            contenido=contenido,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            costo_usd=costo,
            modelo=self.model,
            proveedor=self.proveedor_id,
        )
