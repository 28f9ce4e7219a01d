"""
BlogFleet - Tests del SQLAlchemyStore sobre SQLite.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from core.exceptions import PersistenceError
from core.store import ArticlePayload, clean_import_rows
from models.article import ArticleEstado
from models.keyword import Keyword, KeywordEstado
from models.scheduler_config import SchedulerConfig
from models.site import Site


@pytest_asyncio.fixture
async def seeded(sql_store):
    """Dos sitios; el primero con cadencia activa y dos keywords."""
    async with sql_store.session_factory() as session:
        uno = Site(nombre="Blog Uno", dominio="uno.test")
        dos = Site(nombre="Blog Dos", dominio="dos.test")
        session.add_all([uno, dos])
        await session.flush()
        kw_a = Keyword(site_id=uno.id, keyword="Huerto urbano", prioridad=2)
        kw_b = Keyword(site_id=None, keyword="Compost casero")
        session.add_all([kw_a, kw_b])
        await session.flush()
        session.add(
            SchedulerConfig(
                site_id=uno.id,
                enabled=True,
                auto_publish=True,
                max_por_dia=3,
                max_por_semana=10,
                dias_semana=[1, 2, 3, 4, 5],
                horas_publicacion=[9, 10],
                keyword_ids=[kw_a.id, kw_b.id],
            )
        )
        await session.commit()
        return {"uno": uno.id, "dos": dos.id, "kw_a": kw_a.id, "kw_b": kw_b.id}


def _payload(slug="huerto-urbano", **kwargs):
    return ArticlePayload(titulo="Huerto urbano", slug=slug, contenido="Texto", **kwargs)


class TestLecturas:

    @pytest.mark.asyncio
    async def test_cadencia_desde_la_bd(self, sql_store, seeded):
        cadence = await sql_store.get_cadence(seeded["uno"])
        assert cadence.auto_publish is True
        assert cadence.max_per_day == 3
        assert cadence.allowed_weekdays == frozenset({1, 2, 3, 4, 5})
        assert cadence.selected_keyword_ids == (seeded["kw_a"], seeded["kw_b"])
        assert await sql_store.get_cadence(seeded["dos"]) is None

    @pytest.mark.asyncio
    async def test_sitios_activos(self, sql_store, seeded):
        enabled = await sql_store.list_enabled_sites()
        assert [site.nombre for site, _ in enabled] == ["Blog Uno"]

    @pytest.mark.asyncio
    async def test_keywords_en_orden_pedido(self, sql_store, seeded):
        rows = await sql_store.get_keywords([seeded["kw_b"], 999, seeded["kw_a"]])
        assert [row.id for row in rows] == [seeded["kw_b"], seeded["kw_a"]]
        assert rows[0].site_id is None
        assert rows[1].estado is KeywordEstado.PENDIENTE


class TestReserva:

    @pytest.mark.asyncio
    async def test_reserva_exclusiva(self, sql_store, seeded):
        results = await asyncio.gather(
            sql_store.claim_keyword(seeded["kw_a"]),
            sql_store.claim_keyword(seeded["kw_a"]),
        )
        assert sorted(results) == [False, True]

    @pytest.mark.asyncio
    async def test_liberar_y_cerrar(self, sql_store, seeded):
        kid = seeded["kw_a"]
        assert await sql_store.claim_keyword(kid) is True
        await sql_store.release_keyword(kid)
        assert (await sql_store.get_keywords([kid]))[0].estado is KeywordEstado.PENDIENTE

        await sql_store.claim_keyword(kid)
        await sql_store.mark_keyword_generated(kid, KeywordEstado.PUBLICADO)
        assert (await sql_store.get_keywords([kid]))[0].estado is KeywordEstado.PUBLICADO

    @pytest.mark.asyncio
    async def test_estado_final_invalido(self, sql_store, seeded):
        with pytest.raises(ValueError):
            await sql_store.mark_keyword_generated(seeded["kw_a"], KeywordEstado.GENERANDO)


class TestArticulos:

    @pytest.mark.asyncio
    async def test_insertar_y_contar(self, sql_store, seeded):
        since = datetime.now(timezone.utc) - timedelta(hours=1)
        article = await sql_store.insert_article(
            seeded["uno"], seeded["kw_a"], _payload(estado=ArticleEstado.PUBLICADO,
                                                    fecha_publicado=datetime.now(timezone.utc))
        )
        assert article.estado is ArticleEstado.PUBLICADO
        assert await sql_store.slug_exists(seeded["uno"], "huerto-urbano") is True
        assert await sql_store.slug_exists(seeded["dos"], "huerto-urbano") is False
        assert await sql_store.count_articles_since(seeded["uno"], since) == 1
        assert await sql_store.count_articles_since(seeded["dos"], since) == 0

    @pytest.mark.asyncio
    async def test_slug_duplicado_lanza_persistence_error(self, sql_store, seeded):
        await sql_store.insert_article(seeded["uno"], None, _payload())
        with pytest.raises(PersistenceError):
            await sql_store.insert_article(seeded["uno"], None, _payload())

    @pytest.mark.asyncio
    async def test_borrar_articulo_libera_la_keyword(self, sql_store, seeded):
        kid = seeded["kw_a"]
        await sql_store.claim_keyword(kid)
        article = await sql_store.insert_article(seeded["uno"], kid, _payload())
        await sql_store.mark_keyword_generated(kid, KeywordEstado.GENERADO)

        assert await sql_store.delete_article(article.id) is True
        assert (await sql_store.get_keywords([kid]))[0].estado is KeywordEstado.PENDIENTE
        assert await sql_store.slug_exists(seeded["uno"], "huerto-urbano") is False
        assert await sql_store.delete_article(article.id) is False

    @pytest.mark.asyncio
    async def test_registrar_actividad(self, sql_store, seeded):
        from sqlalchemy import select
        from models.activity_log import ActivityLog

        await sql_store.log_activity(seeded["uno"], "article_generated", "ok", {"article_id": 1})
        async with sql_store.session_factory() as session:
            logs = (await session.execute(select(ActivityLog))).scalars().all()
        assert logs[0].metadata_json == {"article_id": 1}


class TestMantenimiento:

    def test_limpieza_de_importacion(self):
        rows = [{"keyword": " Riego "}, {"keyword": ""}, {"keyword": "riego"}, {"keyword": "Poda"}]
        nuevas, duplicadas = clean_import_rows(rows, existing={"poda"})
        assert [r["keyword"] for r in nuevas] == ["Riego"]
        assert duplicadas == 2

    @pytest.mark.asyncio
    async def test_importar_sin_duplicados(self, sql_store, seeded):
        result = await sql_store.import_keywords(
            seeded["uno"],
            [{"keyword": "HUERTO URBANO"}, {"keyword": "Abono", "prioridad": 4}, {"keyword": "abono"}],
        )
        assert (result.imported, result.duplicates) == (1, 2)

        # El pool global es otro ámbito
        result = await sql_store.import_keywords(None, [{"keyword": "Huerto urbano"}])
        assert result.imported == 1

    @pytest.mark.asyncio
    async def test_archivar(self, sql_store, seeded):
        assert await sql_store.archive_keywords([seeded["kw_a"], seeded["kw_b"]]) == 2
        rows = await sql_store.get_keywords([seeded["kw_a"]])
        assert rows[0].estado is KeywordEstado.ARCHIVADO
        assert await sql_store.claim_keyword(seeded["kw_a"]) is False
