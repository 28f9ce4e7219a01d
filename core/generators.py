"""
BlogFleet - Colaboradores de generación.

Interfaces que consume el pipeline (contenido, mejora, imagen) y sus
implementaciones por defecto:

  - AIContentGenerator  → AIRouter, tarea "generacion_articulo"
  - AIContentImprover   → AIRouter.generate_direct con el modelo elegido
  - ReplicateImageGenerator → API HTTP de Replicate (FLUX / SDXL)
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import get_config, get_settings
from core.ai_router import AIRouter
from core.exceptions import GenerationError, ImprovementError
from utils.text import parse_json_response, slugify

logger = logging.getLogger(__name__)


@dataclass
class FAQItem:
    question: str
    answer: str


@dataclass
class GeneratedDraft:
    """Borrador de artículo devuelto por el generador."""
    title: str
    slug: str
    body: str
    summary: str = ""
    faq: list[FAQItem] = field(default_factory=list)

    def faq_as_json(self) -> list[dict]:
        return [{"question": item.question, "answer": item.answer} for item in self.faq]


@dataclass(frozen=True)
class GeneratedImage:
    url: str
    alt: str


@dataclass(frozen=True)
class ImprovementOptions:
    model: str
    mode: str


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

class ContentGenerator(ABC):
    @abstractmethod
    async def generate(self, keyword: str, style_hint: Optional[str] = None) -> GeneratedDraft:
        """
        Raises:
            GenerationError: Si no se pudo generar el borrador.
        """


class ContentImprover(ABC):
    @abstractmethod
    async def improve(self, draft: GeneratedDraft, options: ImprovementOptions) -> GeneratedDraft:
        """
        Raises:
            ImprovementError: Si la mejora falla (nunca fatal para quien llama).
        """


class ImageGenerator(ABC):
    @abstractmethod
    async def generate(self, prompt: str, model: str, site_id: int) -> Optional[GeneratedImage]:
        """URL + alt de la imagen, o None si no hay imagen."""


def build_image_prompt(title: str, keyword: Optional[str] = None) -> str:
    """Prompt de imagen a partir del título (sin signos ni números)."""
    clean_title = re.sub(r"[?!:¿¡]", "", title)
    clean_title = re.sub(r"\d+", "", clean_title).strip()
    return f"{keyword}, {clean_title}" if keyword else clean_title


def draft_from_payload(data: dict, keyword: str) -> GeneratedDraft:
    """
    Valida el JSON devuelto por la IA.

    Raises:
        GenerationError: Si faltan título o contenido.
    """
    title = (data.get("titulo") or data.get("title") or "").strip()
    body = (data.get("contenido") or data.get("content") or "").strip()
    if not title or not body:
        raise GenerationError(f"Respuesta incompleta para '{keyword}' (sin título o contenido)")

    faq = []
    for item in data.get("faq") or []:
        if not isinstance(item, dict):
            continue
        question = item.get("question") or item.get("pregunta")
        answer = item.get("answer") or item.get("respuesta")
        if question and answer:
            faq.append(FAQItem(question=question, answer=answer))

    return GeneratedDraft(
        title=title,
        slug=slugify(data.get("slug") or title) or slugify(keyword),
        body=body,
        summary=(data.get("resumen") or data.get("summary") or "").strip(),
        faq=faq,
    )


# ---------------------------------------------------------------------------
# Implementaciones con IA
# ---------------------------------------------------------------------------

GENERATION_SYSTEM = (
    "Eres un redactor SEO experto. Escribes artículos de blog originales, "
    "bien estructurados (H2/H3) y útiles para el lector."
)

GENERATION_PROMPT = """Escribe un artículo completo para la keyword: "{keyword}".
{style}
Devuelve un objeto JSON con las claves:
  "titulo": título atractivo que contenga la keyword,
  "slug": slug URL-friendly,
  "contenido": artículo en Markdown (mínimo 1000 palabras),
  "resumen": resumen de 2-3 frases,
  "faq": lista de 3-5 objetos {{"question": ..., "answer": ...}}
"""


class AIContentGenerator(ContentGenerator):
    """Generador de borradores sobre el AIRouter."""

    TASK_TYPE = "generacion_articulo"

    def __init__(self, router: AIRouter, profile: str = "default"):
        self.router = router
        self.profile = profile

    async def generate(self, keyword: str, style_hint: Optional[str] = None) -> GeneratedDraft:
        style = f"Contexto temático (cluster): {style_hint}." if style_hint else ""
        response = await self.router.generate(
            task_type=self.TASK_TYPE,
            prompt=GENERATION_PROMPT.format(keyword=keyword, style=style),
            system=GENERATION_SYSTEM,
            profile=self.profile,
            max_tokens=6000,
            json_mode=True,
        )
        if not response.exito:
            raise GenerationError(response.error or "Error desconocido del proveedor")

        data = parse_json_response(response.contenido)
        if not data:
            raise GenerationError(f"No se pudo parsear el artículo generado para '{keyword}'")
        return draft_from_payload(data, keyword)


class AIContentImprover(ContentImprover):
    """Pasada de mejora con el modelo y modo elegidos por el operador."""

    def __init__(self, router: AIRouter):
        self.router = router
        self.modes = get_config().get("improvement_modes", {})

    async def improve(self, draft: GeneratedDraft, options: ImprovementOptions) -> GeneratedDraft:
        instruction = self.modes.get(options.mode)
        if not instruction:
            raise ImprovementError(f"Modo de mejora desconocido: {options.mode}")
        provider_id = self.router.provider_for_model(options.model)
        if not provider_id:
            raise ImprovementError(f"Modelo de mejora desconocido: {options.model}")

        payload = json.dumps(
            {
                "titulo": draft.title,
                "contenido": draft.body,
                "resumen": draft.summary,
                "faq": draft.faq_as_json(),
            },
            ensure_ascii=False,
        )
        response = await self.router.generate_direct(
            provider_id=provider_id,
            model=options.model,
            prompt=f"{instruction}\n\nArtículo (JSON):\n{payload}\n\nDevuelve el artículo mejorado con las mismas claves JSON.",
            system="Eres un editor SEO senior.",
            max_tokens=8000,
            json_mode=True,
        )
        if not response.exito:
            raise ImprovementError(response.error or "Error desconocido del proveedor")

        data = parse_json_response(response.contenido)
        if not data:
            raise ImprovementError("Respuesta de mejora no parseable")
        try:
            improved = draft_from_payload(data, draft.title)
        except GenerationError as e:
            raise ImprovementError(str(e)) from e
        # El slug original se conserva: la mejora no cambia la URL
        return replace(improved, slug=draft.slug)


# ---------------------------------------------------------------------------
# Imágenes (Replicate)
# ---------------------------------------------------------------------------

REPLICATE_MODELS = {
    "flux-schnell": "black-forest-labs/flux-schnell",
    "flux-dev": "black-forest-labs/flux-dev",
    "sdxl": "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b",
}


class ReplicateImageGenerator(ImageGenerator):
    """
    Imagen destacada vía la API de predicciones de Replicate.
    Sin token configurado devuelve None (el pipeline sigue sin imagen).
    """

    def __init__(self, api_token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: float = 60.0):
        settings = get_settings()
        self.api_token = api_token if api_token is not None else settings.replicate_api_token
        self.base_url = (base_url or settings.replicate_base_url).rstrip("/")
        self.timeout = timeout

    def _request(self, model: str, prompt: str) -> tuple[str, dict]:
        model_id = REPLICATE_MODELS.get(model)
        if not model_id:
            raise ValueError(f"Modelo de imagen desconocido: {model}")

        enhanced = (
            f"Professional blog header image: {prompt}. High quality, modern, clean design, "
            "suitable for web article header, 16:9 aspect ratio, professional photography style"
        )
        if ":" in model_id:
            _, version = model_id.split(":", 1)
            body = {
                "version": version,
                "input": {
                    "prompt": enhanced,
                    "negative_prompt": "blurry, low quality, distorted, watermark, text, logo",
                    "width": 1024,
                    "height": 576,
                    "num_outputs": 1,
                },
            }
            return f"{self.base_url}/predictions", body

        body = {
            "input": {
                "prompt": enhanced,
                "aspect_ratio": "16:9",
                "output_format": "webp",
                "output_quality": 90,
            }
        }
        return f"{self.base_url}/models/{model_id}/predictions", body

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    async def _post(self, url: str, body: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(
                url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Prefer": "wait",
                },
            )
            r.raise_for_status()
            return r.json()

    async def generate(self, prompt: str, model: str, site_id: int) -> Optional[GeneratedImage]:
        if not self.api_token:
            logger.warning("[Imagen] REPLICATE_API_TOKEN no configurado, sin imagen")
            return None

        url, body = self._request(model, prompt)
        data = await self._post(url, body)

        output = data.get("output")
        image_url = output[0] if isinstance(output, list) and output else output
        if not image_url or not isinstance(image_url, str):
            logger.warning(
                "[Imagen] Sitio #%s: Replicate no devolvió URL (status=%s)",
                site_id, data.get("status"),
            )
            return None

        return GeneratedImage(url=image_url, alt=prompt)


def build_default_collaborators(router: Optional[AIRouter] = None):
    """Generador, mejorador e imagen por defecto, compartiendo un AIRouter."""
    router = router or AIRouter()
    return AIContentGenerator(router), AIContentImprover(router), ReplicateImageGenerator()
