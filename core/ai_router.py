"""
BlogFleet - AI Router.
Enruta cada tarea al proveedor de IA adecuado según:
  - Tipo de tarea (generacion_articulo, mejora_articulo)
  - Perfil de enrutamiento (default, premium)
  - Configuración en config.yaml
  - Fallback automático si un proveedor falla
"""
import logging
from typing import Optional

from core.ai_providers.base import AIProvider, AIResponse
from core.ai_providers.deepseek import DeepSeekProvider
from core.ai_providers.claude import ClaudeProvider
from config import get_config

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class AIRouter:
    """
    Enrutador de tareas de IA.

    Uso:
        router = AIRouter()
        response = await router.generate(
            task_type="generacion_articulo",
            prompt="Escribe un artículo sobre...",
            system="Eres un redactor SEO experto...",
        )
    """

    def __init__(self, config: Optional[dict] = None):
        self.config = config if config is not None else get_config()
        self.routing_config = self.config.get("ai_routing", {})

        # Cache de proveedores instanciados
        self._providers: dict[str, AIProvider] = {}

    def _get_provider(self, provider_id: str, model: str) -> AIProvider:
        """Obtiene o crea instancia del proveedor."""
        cache_key = f"{provider_id}:{model}"

        if cache_key not in self._providers:
            if provider_id == "deepseek":
                self._providers[cache_key] = DeepSeekProvider(model=model)
            elif provider_id == "claude":
                self._providers[cache_key] = ClaudeProvider(model=model)
            else:
                raise ValueError(f"Proveedor desconocido: {provider_id}")

        return self._providers[cache_key]

    def resolve(self, task_type: str, profile: str = DEFAULT_PROFILE) -> Optional[tuple[str, str]]:
        """
        Resuelve proveedor y modelo para una tarea.
        Si el perfil no existe para la tarea se usa el perfil por defecto.

        Returns:
            Tupla (provider_id, model) o None si la tarea no está configurada.
        """
        task_config = self.routing_config.get(task_type, {})
        profile_config = task_config.get(profile) or task_config.get(DEFAULT_PROFILE)

        if profile_config is None:
            logger.warning("[Router] Tarea '%s' sin enrutamiento configurado", task_type)
            return None

        return (profile_config["provider"], profile_config["model"])

    def provider_for_model(self, model: str) -> Optional[str]:
        """Proveedor de un modelo del catálogo de mejora."""
        entry = self.config.get("improvement_models", {}).get(model)
        return entry["provider"] if entry else None

    def _get_fallback_provider(self) -> AIProvider:
        """Claude Haiku como fallback universal."""
        return self._get_provider("claude", "haiku")

    async def generate(
        self,
        task_type: str,
        prompt: str,
        system: str = "",
        profile: str = DEFAULT_PROFILE,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        json_mode: bool = False,
        use_fallback: bool = True,
    ) -> AIResponse:
        """
        Genera contenido enrutando al proveedor correcto.

        Returns:
            AIResponse; exito=False si la tarea no está configurada o si
            fallan tanto el proveedor principal como el fallback.
        """
        resolved = self.resolve(task_type, profile)
        if resolved is None:
            return AIResponse(
                contenido="",
                exito=False,
                error=f"Tarea '{task_type}' no configurada",
            )

        provider_id, model = resolved
        provider = self._get_provider(provider_id, model)

        logger.info("[Router] Tarea: %s | Perfil: %s → %s/%s", task_type, profile, provider_id, model)

        response = await provider.generate(
            prompt=prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )

        if not response.exito and use_fallback and provider_id != "claude":
            logger.warning(
                "[Router] %s falló: %s. Usando fallback Claude Haiku...",
                provider_id, response.error,
            )
            response = await self._get_fallback_provider().generate(
                prompt=prompt,
                system=system,
                max_tokens=max_tokens,
                temperature=temperature,
                json_mode=json_mode,
            )
            if response.exito:
                logger.info("[Router] Fallback exitoso con Claude Haiku")

        return response

    async def generate_direct(
        self,
        provider_id: str,
        model: str,
        prompt: str,
        system: str = "",
        max_tokens: int = 4000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> AIResponse:
        """
        Genera contenido con un proveedor específico (sin enrutamiento).
        Usado por la pasada de mejora, donde el operador elige el modelo.
        """
        provider = self._get_provider(provider_id, model)
        return await provider.generate(
            prompt=prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )
