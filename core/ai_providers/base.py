"""
BlogFleet - Clase base para proveedores de IA.
Todos los proveedores deben implementar esta interfaz.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class AIResponse:
    """Respuesta estandarizada de cualquier proveedor de IA."""
    contenido: str                  # Texto generado
    tokens_input: int = 0
    tokens_output: int = 0
    costo_usd: float = 0.0
    modelo: str = ""
    proveedor: str = ""
    exito: bool = True
    error: Optional[str] = None

    @property
    def tokens_total(self) -> int:
        return self.tokens_input + self.tokens_output


class AIProvider(ABC):
    """
    Clase base abstracta para proveedores de IA.
    Un proveedor nunca lanza: los fallos vuelven como AIResponse(exito=False).
    """

    nombre: str = ""
    proveedor_id: str = ""  # deepseek, claude

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 4000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> AIResponse:
        """
        Genera texto con el modelo de IA.

        Args:
            prompt: Mensaje del usuario.
            system: Mensaje de sistema (instrucciones).
            max_tokens: Máximo de tokens a generar.
            temperature: Creatividad (0.0 - 1.0).
            json_mode: Pedir al modelo una respuesta JSON.
        """

    def _costo(self, input_tokens: int, output_tokens: int, precios: dict) -> float:
        """Costo en USD a partir de precios por 1M tokens."""
        costo_input = (input_tokens / 1_000_000) * precios["input"]
        costo_output = (output_tokens / 1_000_000) * precios["output"]
        return round(costo_input + costo_output, 6)

    def _fallo(self, modelo: str, error: Exception) -> AIResponse:
        return AIResponse(
            contenido="",
            proveedor=self.proveedor_id,
            modelo=modelo,
            exito=False,
            error=str(error),
        )
