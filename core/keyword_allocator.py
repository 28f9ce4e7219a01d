"""
BlogFleet - Keyword Allocator.

Elige la siguiente keyword pendiente de un sitio entre las candidatas
seleccionadas (keywords del sitio + pool global) y la reserva en el Store.
"""
import logging
from typing import Optional

from core.exceptions import AllocationError, BlogFleetError
from core.store import Store, KeywordRow
from models.keyword import KeywordEstado

logger = logging.getLogger(__name__)


def order_candidates(site_id: int, candidates: list[KeywordRow]) -> list[KeywordRow]:
    """
    Filtra y ordena candidatas.
    Solo keywords pendientes del sitio o globales; prioridad descendente,
    empate resuelto por el orden de inserción (sort estable).
    """
    usables = [
        kw for kw in candidates
        if kw.estado is KeywordEstado.PENDIENTE and kw.site_id in (site_id, None)
    ]
    return sorted(usables, key=lambda kw: kw.prioridad, reverse=True)


class KeywordAllocator:
    """
    Reserva keywords de forma exclusiva.

    Uso:
        allocator = KeywordAllocator(store)
        keyword = await allocator.allocate_next(site_id, [12, 15, 18])
        if keyword is None:
            ...  # sin keywords pendientes para este sitio
    """

    def __init__(self, store: Store):
        self.store = store

    async def allocate_next(
        self, site_id: int, candidate_keyword_ids: list[int]
    ) -> Optional[KeywordRow]:
        """
        Reserva la siguiente keyword (pendiente → generando) y la devuelve.

        Returns:
            La keyword reservada, o None si no queda ninguna pendiente.

        Raises:
            AllocationError: Si el Store no está disponible.
        """
        try:
            candidates = await self.store.get_keywords(list(candidate_keyword_ids))
        except BlogFleetError:
            raise
        except Exception as e:
            raise AllocationError(f"Store no disponible: {e}") from e

        for kw in order_candidates(site_id, candidates):
            try:
                claimed = await self.store.claim_keyword(kw.id)
            except Exception as e:
                raise AllocationError(f"Error reservando keyword #{kw.id}: {e}") from e

            if claimed:
                logger.info(
                    "[Allocator] Sitio #%s: keyword #%d reservada ('%s', prioridad %d)",
                    site_id, kw.id, kw.keyword, kw.prioridad,
                )
                return KeywordRow(
                    id=kw.id,
                    site_id=kw.site_id,
                    keyword=kw.keyword,
                    estado=KeywordEstado.GENERANDO,
                    prioridad=kw.prioridad,
                    cluster=kw.cluster,
                )

            # Otra ejecución la reservó antes: probar la siguiente
            logger.debug("[Allocator] Keyword #%d ya reservada, siguiente candidata", kw.id)

        logger.info("[Allocator] Sitio #%s: sin keywords pendientes", site_id)
        return None
