"""
BlogFleet - Tests del Generation Pipeline.
La keyword nunca queda en "generando", pase lo que pase.
"""
import asyncio

import pytest

from core.generation_pipeline import GenerationPipeline, PipelineOptions, final_article_status
from core.generators import ImprovementOptions
from models.article import ArticleEstado
from models.keyword import KeywordEstado
from tests.fakes import FakeGenerator, FakeImages, FakeImprover


async def _claimed(store, site_id, text, **kwargs):
    kw = store.add_keyword(site_id, text, **kwargs)
    await store.claim_keyword(kw.id)
    return store.keywords[kw.id]


class TestEstadosFinales:

    def test_auto_publicacion(self):
        assert final_article_status(True) == (ArticleEstado.PUBLICADO, KeywordEstado.PUBLICADO)
        assert final_article_status(False) == (ArticleEstado.BORRADOR, KeywordEstado.GENERADO)


class TestPipelineExito:

    @pytest.mark.asyncio
    async def test_borrador_sin_auto_publicar(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "huerto urbano", cluster="jardín")

        result = await pipeline.run(site, kw, PipelineOptions(auto_publish=False))

        assert result.ok is True
        assert result.article.estado is ArticleEstado.BORRADOR
        assert result.article.fecha_publicado is None
        assert store.status(kw.id) is KeywordEstado.GENERADO
        payload = store.payloads[result.article.id]
        assert payload.imagen_url == "https://img.test/cover.webp"
        assert payload.faq[0]["question"].startswith("¿Qué es")

    @pytest.mark.asyncio
    async def test_publicado_con_auto_publicar(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "compost")

        result = await pipeline.run(site, kw, PipelineOptions(auto_publish=True))

        assert result.article.estado is ArticleEstado.PUBLICADO
        assert result.article.fecha_publicado is not None
        assert store.status(kw.id) is KeywordEstado.PUBLICADO

    @pytest.mark.asyncio
    async def test_registra_actividad(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "riego", cluster="agua")
        await pipeline.run(site, kw, PipelineOptions(auto_publish=True))

        entry = store.activity[-1]
        assert entry["tipo"] == "article_generated"
        assert entry["metadata"]["keyword"] == "riego"
        assert entry["metadata"]["cluster"] == "agua"
        assert entry["metadata"]["auto_published"] is True
        assert entry["metadata"]["image_generated"] is True

    @pytest.mark.asyncio
    async def test_slug_repetido_recibe_sufijo(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        first = await pipeline.run(site, await _claimed(store, 1, "poda"), PipelineOptions())
        second_kw = await _claimed(store, 1, "poda")
        second = await pipeline.run(site, second_kw, PipelineOptions())

        assert first.article.slug == "guia-de-poda"
        assert second.article.slug == "guia-de-poda-2"

    @pytest.mark.asyncio
    async def test_mejora_aplicada(self, store, pipeline, improver):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "abono")
        options = PipelineOptions(improvement=ImprovementOptions(model="haiku", mode="seo-classic"))

        result = await pipeline.run(site, kw, options)

        assert result.ok is True
        assert result.improved is True
        assert result.title.endswith("(mejorado)")
        assert improver.calls == [ImprovementOptions(model="haiku", mode="seo-classic")]
        assert store.payloads[result.article.id].mejorado is True


class TestPipelineFallos:

    @pytest.mark.asyncio
    async def test_error_de_generacion_libera_la_keyword(self, store):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "plagas")
        pipeline = GenerationPipeline(store, FakeGenerator(fail_on={"plagas"}))

        result = await pipeline.run(site, kw, PipelineOptions())

        assert result.ok is False
        assert result.title == "plagas"
        assert "no respondió" in result.error
        assert store.status(kw.id) is KeywordEstado.PENDIENTE
        assert store.articles_for(1) == []

    @pytest.mark.asyncio
    async def test_cancelacion_durante_la_generacion_libera_la_keyword(self, store):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "riego")

        def cancel(keyword):
            raise asyncio.CancelledError()

        pipeline = GenerationPipeline(store, FakeGenerator(on_generate=cancel))

        with pytest.raises(asyncio.CancelledError):
            await pipeline.run(site, kw, PipelineOptions())

        assert store.status(kw.id) is KeywordEstado.PENDIENTE
        assert store.articles_for(1) == []

    @pytest.mark.asyncio
    async def test_cancelacion_durante_la_imagen_libera_la_keyword(self, store):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "poda")
        images = FakeImages()

        async def cancelled_image(prompt, model, site_id):
            raise asyncio.CancelledError()

        images.generate = cancelled_image
        pipeline = GenerationPipeline(store, FakeGenerator(), images=images)

        with pytest.raises(asyncio.CancelledError):
            await pipeline.run(site, kw, PipelineOptions())

        assert store.status(kw.id) is KeywordEstado.PENDIENTE
        assert store.articles_for(1) == []

    @pytest.mark.asyncio
    async def test_mejora_fallida_usa_el_borrador_original(self, store):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "semillas")
        pipeline = GenerationPipeline(store, FakeGenerator(), FakeImprover(fail=True), FakeImages())
        options = PipelineOptions(
            auto_publish=True, improvement=ImprovementOptions(model="haiku", mode="full-pbn")
        )

        result = await pipeline.run(site, kw, options)

        assert result.ok is True
        assert result.improved is False
        assert result.error is None
        assert result.title == "Guía de semillas"
        assert result.article.estado is ArticleEstado.PUBLICADO

    @pytest.mark.asyncio
    async def test_imagen_fallida_no_bloquea(self, store):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "macetas")
        pipeline = GenerationPipeline(store, FakeGenerator(), None, FakeImages(fail=True))

        result = await pipeline.run(site, kw, PipelineOptions())

        assert result.ok is True
        assert store.payloads[result.article.id].imagen_url is None
        assert store.activity[-1]["metadata"]["image_generated"] is False

    @pytest.mark.asyncio
    async def test_error_al_guardar_libera_la_keyword(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "esquejes")
        store.fail_insert = True

        result = await pipeline.run(site, kw, PipelineOptions())

        assert result.ok is False
        assert result.title == "Guía de esquejes"
        assert "disco lleno" in result.error
        assert store.status(kw.id) is KeywordEstado.PENDIENTE

    @pytest.mark.asyncio
    async def test_error_al_cerrar_la_keyword_no_la_deja_generando(self, store, pipeline):
        site = store.add_site(1, "Blog Uno")
        kw = await _claimed(store, 1, "sustrato")
        store.fail_mark = True

        result = await pipeline.run(site, kw, PipelineOptions())

        assert result.ok is True
        assert store.status(kw.id) is not KeywordEstado.GENERANDO
