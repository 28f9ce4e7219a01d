"""
BlogFleet - Tests del Keyword Allocator.
"""
import pytest

from core.exceptions import AllocationError
from core.keyword_allocator import KeywordAllocator, order_candidates
from models.keyword import KeywordEstado


class TestOrdenCandidatas:

    def test_prioridad_descendente_y_empates_estables(self, store):
        a = store.add_keyword(1, "a", prioridad=1)
        b = store.add_keyword(1, "b", prioridad=5)
        c = store.add_keyword(1, "c", prioridad=1)
        d = store.add_keyword(None, "d", prioridad=5)
        ordered = order_candidates(1, [a, b, c, d])
        assert [kw.keyword for kw in ordered] == ["b", "d", "a", "c"]

    def test_descarta_no_pendientes_y_otros_sitios(self, store):
        ok = store.add_keyword(1, "propia")
        ajena = store.add_keyword(2, "ajena", prioridad=9)
        usada = store.add_keyword(1, "usada", prioridad=9, estado=KeywordEstado.GENERADO)
        archivada = store.add_keyword(None, "archivada", estado=KeywordEstado.ARCHIVADO)
        assert order_candidates(1, [ok, ajena, usada, archivada]) == [ok]


class TestAllocateNext:

    @pytest.mark.asyncio
    async def test_reserva_la_de_mayor_prioridad(self, store):
        low = store.add_keyword(1, "baja", prioridad=1)
        high = store.add_keyword(1, "alta", prioridad=3)
        allocator = KeywordAllocator(store)

        kw = await allocator.allocate_next(1, [low.id, high.id])
        assert kw.id == high.id
        assert kw.estado is KeywordEstado.GENERANDO
        assert store.status(high.id) is KeywordEstado.GENERANDO
        assert store.status(low.id) is KeywordEstado.PENDIENTE

    @pytest.mark.asyncio
    async def test_usa_el_pool_global(self, store):
        global_kw = store.add_keyword(None, "global")
        kw = await KeywordAllocator(store).allocate_next(1, [global_kw.id])
        assert kw.id == global_kw.id
        assert kw.site_id is None

    @pytest.mark.asyncio
    async def test_sin_pendientes_devuelve_none(self, store):
        used = store.add_keyword(1, "usada", estado=KeywordEstado.PUBLICADO)
        assert await KeywordAllocator(store).allocate_next(1, [used.id]) is None
        assert await KeywordAllocator(store).allocate_next(1, []) is None

    @pytest.mark.asyncio
    async def test_reserva_perdida_pasa_a_la_siguiente(self, store):
        first = store.add_keyword(1, "primera", prioridad=2)
        second = store.add_keyword(1, "segunda", prioridad=1)
        original_claim = store.claim_keyword

        async def claim_lost_first(keyword_id):
            if keyword_id == first.id:
                # Otra ejecución la reserva justo antes
                await original_claim(keyword_id)
                return False
            return await original_claim(keyword_id)

        store.claim_keyword = claim_lost_first
        kw = await KeywordAllocator(store).allocate_next(1, [first.id, second.id])
        assert kw.id == second.id

    @pytest.mark.asyncio
    async def test_dos_reservas_de_la_misma_keyword(self, store):
        kw = store.add_keyword(1, "única")
        allocator = KeywordAllocator(store)
        assert (await allocator.allocate_next(1, [kw.id])).id == kw.id
        assert await allocator.allocate_next(1, [kw.id]) is None

    @pytest.mark.asyncio
    async def test_store_caido_lanza_allocation_error(self, store):
        async def broken(keyword_ids):
            raise ConnectionError("BD no disponible")

        store.get_keywords = broken
        with pytest.raises(AllocationError):
            await KeywordAllocator(store).allocate_next(1, [1])
