"""
BlogFleet - Tests de los colaboradores de generación y del AIRouter.
Los proveedores se sustituyen por dobles: ninguna llamada sale a la red.
"""
import json

import pytest

from core.ai_providers.base import AIResponse
from core.ai_router import AIRouter
from core.exceptions import GenerationError, ImprovementError
from core.generators import (
    AIContentGenerator,
    AIContentImprover,
    GeneratedDraft,
    ImprovementOptions,
    ReplicateImageGenerator,
    build_image_prompt,
    draft_from_payload,
)
from utils.text import parse_json_response, slugify, truncate_label


class StubProvider:
    """Proveedor que devuelve respuestas preparadas en orden."""

    def __init__(self, *responses: AIResponse):
        self.responses = list(responses)
        self.prompts = []

    async def generate(self, prompt, system="", max_tokens=4000, temperature=0.7, json_mode=False):
        self.prompts.append(prompt)
        return self.responses.pop(0)


def _router_with(providers: dict) -> AIRouter:
    router = AIRouter()
    router._providers.update(providers)
    return router


ARTICLE_JSON = json.dumps({
    "titulo": "Cómo empezar un huerto urbano",
    "slug": "Huerto Urbano 101",
    "contenido": "## Introducción\nTexto.",
    "resumen": "Resumen.",
    "faq": [{"question": "¿Cuánto sol?", "answer": "Seis horas."}, "basura"],
})


class TestUtilidadesDeTexto:

    def test_slugify(self):
        assert slugify("¿Cómo Podar Árboles?") == "como-podar-arboles"

    def test_truncate_label(self):
        assert truncate_label("corto") == "corto"
        assert truncate_label("a" * 31) == "a" * 30 + "…"

    def test_parse_json_con_backticks(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
        assert parse_json_response('Aquí tienes: {"a": 2} ¡listo!') == {"a": 2}
        assert parse_json_response("sin json") is None
        assert parse_json_response("[1, 2]") is None


class TestDraftFromPayload:

    def test_borrador_valido(self):
        draft = draft_from_payload(json.loads(ARTICLE_JSON), "huerto urbano")
        assert draft.slug == "huerto-urbano-101"
        assert len(draft.faq) == 1

    def test_sin_contenido_lanza(self):
        with pytest.raises(GenerationError):
            draft_from_payload({"titulo": "Solo título"}, "x")

    def test_prompt_de_imagen_limpio(self):
        assert build_image_prompt("¿10 trucos para regar?", "riego") == "riego, trucos para regar"


class TestAIRouter:

    def test_resolve_con_perfil_inexistente_usa_default(self):
        router = AIRouter()
        assert router.resolve("generacion_articulo", "vip") == ("deepseek", "deepseek-chat")
        assert router.resolve("tarea_inexistente") is None

    def test_modelo_de_mejora(self):
        router = AIRouter()
        assert router.provider_for_model("sonnet") == "claude"
        assert router.provider_for_model("gpt-99") is None

    @pytest.mark.asyncio
    async def test_fallback_a_claude(self):
        primary = StubProvider(AIResponse(contenido="", exito=False, error="503"))
        fallback = StubProvider(AIResponse(contenido="ok", proveedor="claude"))
        router = _router_with({"deepseek:deepseek-chat": primary, "claude:haiku": fallback})

        response = await router.generate("generacion_articulo", "prompt")

        assert response.exito is True
        assert response.contenido == "ok"

    @pytest.mark.asyncio
    async def test_tarea_no_configurada(self):
        response = await AIRouter(config={}).generate("generacion_articulo", "prompt")
        assert response.exito is False


class TestAIContentGenerator:

    @pytest.mark.asyncio
    async def test_genera_borrador(self):
        provider = StubProvider(AIResponse(contenido=ARTICLE_JSON))
        generator = AIContentGenerator(_router_with({"deepseek:deepseek-chat": provider}))

        draft = await generator.generate("huerto urbano", "jardinería")

        assert draft.title == "Cómo empezar un huerto urbano"
        assert "jardinería" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_respuesta_no_parseable(self):
        provider = StubProvider(AIResponse(contenido="lo siento, no puedo"))
        generator = AIContentGenerator(_router_with({"deepseek:deepseek-chat": provider}))
        with pytest.raises(GenerationError):
            await generator.generate("huerto urbano")


class TestAIContentImprover:

    DRAFT = GeneratedDraft(title="Original", slug="original", body="Cuerpo")

    @pytest.mark.asyncio
    async def test_conserva_el_slug(self):
        improved_json = json.dumps({"titulo": "Mejorado", "slug": "otro", "contenido": "Nuevo"})
        provider = StubProvider(AIResponse(contenido=improved_json))
        improver = AIContentImprover(_router_with({"claude:haiku": provider}))

        result = await improver.improve(self.DRAFT, ImprovementOptions(model="haiku", mode="seo-classic"))

        assert result.title == "Mejorado"
        assert result.slug == "original"

    @pytest.mark.asyncio
    async def test_modo_desconocido(self):
        improver = AIContentImprover(AIRouter())
        with pytest.raises(ImprovementError):
            await improver.improve(self.DRAFT, ImprovementOptions(model="haiku", mode="turbo"))

    @pytest.mark.asyncio
    async def test_fallo_del_proveedor(self):
        provider = StubProvider(AIResponse(contenido="", exito=False, error="rate limit"))
        improver = AIContentImprover(_router_with({"claude:sonnet": provider}))
        with pytest.raises(ImprovementError):
            await improver.improve(self.DRAFT, ImprovementOptions(model="sonnet", mode="full-pbn"))


class TestReplicateImageGenerator:

    @pytest.mark.asyncio
    async def test_sin_token_no_hay_imagen(self):
        images = ReplicateImageGenerator(api_token="")
        assert await images.generate("prompt", "flux-schnell", 1) is None

    def test_peticion_flux(self):
        images = ReplicateImageGenerator(api_token="t", base_url="https://replicate.test/v1/")
        url, body = images._request("flux-schnell", "huerto")
        assert url == "https://replicate.test/v1/models/black-forest-labs/flux-schnell/predictions"
        assert body["input"]["aspect_ratio"] == "16:9"

    def test_peticion_sdxl_con_version(self):
        images = ReplicateImageGenerator(api_token="t", base_url="https://replicate.test/v1")
        url, body = images._request("sdxl", "huerto")
        assert url.endswith("/predictions")
        assert "version" in body

    @pytest.mark.asyncio
    async def test_url_de_la_salida(self, monkeypatch):
        images = ReplicateImageGenerator(api_token="t")

        async def fake_post(url, body):
            return {"status": "succeeded", "output": ["https://cdn.test/img.webp"]}

        monkeypatch.setattr(images, "_post", fake_post)
        image = await images.generate("huerto", "flux-schnell", 1)
        assert image.url == "https://cdn.test/img.webp"
        assert image.alt == "huerto"
