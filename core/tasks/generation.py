"""
BlogFleet - Tareas Celery de generación programada.

Cada hora, para cada sitio con el scheduler activado, intenta generar UN
artículo. La ventana de días/horas del sitio se respeta salvo con
force=True; las cuotas diarias/semanales se respetan siempre.
"""
import logging
from typing import Optional

from core.celery_app import celery_app, run_async
from core.generation_pipeline import GenerationPipeline
from core.generators import build_default_collaborators
from core.run_coordinator import RunCoordinator
from core.store import Store, SQLAlchemyStore

logger = logging.getLogger("blogfleet.tasks.generation")


def build_coordinator(store: Optional[Store] = None) -> RunCoordinator:
    """Coordinador con los colaboradores por defecto."""
    store = store or SQLAlchemyStore()
    generator, improver, images = build_default_collaborators()
    pipeline = GenerationPipeline(store, generator, improver, images)
    return RunCoordinator(store, pipeline)


async def run_scheduled(coordinator: RunCoordinator, force: bool = False) -> dict:
    """Lógica async de la generación programada para todos los sitios activos."""
    sites = await coordinator.store.list_enabled_sites()

    generated = 0
    skipped = 0
    failed = 0

    for site, cadence in sites:
        result = await coordinator.run_one(
            site.id,
            list(cadence.selected_keyword_ids),
            bypass_cadence_window=force,
        )
        if result.success:
            generated += 1
            logger.info("[Celery] %s: artículo generado → '%s'", site.nombre, result.title)
        elif result.title:
            # El pipeline llegó a ejecutarse y falló
            failed += 1
            logger.error("[Celery] %s: error generando '%s': %s", site.nombre, result.title, result.error)
            try:
                await coordinator.store.log_activity(
                    site.id, "generation_failed", f"Error generando: {result.title}",
                    {"error": result.error},
                )
            except Exception as e:
                logger.warning("[Celery] %s: no se pudo registrar el error: %s", site.nombre, e)
        else:
            skipped += 1
            logger.info("[Celery] %s: omitido (%s)", site.nombre, result.error)

    summary = {
        "active_configs": len(sites),
        "generated": generated,
        "skipped": skipped,
        "failed": failed,
        "forced": force,
    }
    logger.info("[Celery] Generación programada: %s", summary)
    return summary


@celery_app.task(name="core.tasks.generation.generate_scheduled_posts")
def generate_scheduled_posts(force: bool = False) -> dict:
    """
    Tarea periódica: un artículo por sitio activo dentro de su ventana.
    Disparada por Celery Beat cada hora en punto.
    """
    logger.info("[Celery] Iniciando generación programada (force=%s)", force)
    return run_async(run_scheduled(build_coordinator(), force=force))


async def _generate_for_site_async(site_id: int, keyword_ids: Optional[list[int]] = None) -> dict:
    result = await build_coordinator().run_one(site_id, keyword_ids)
    return {
        "success": result.success,
        "title": result.title,
        "error": result.error,
        "improved": result.improved,
    }


@celery_app.task(name="core.tasks.generation.generate_for_site")
def generate_for_site(site_id: int, keyword_ids: Optional[list[int]] = None) -> dict:
    """
    Genera un artículo para un sitio ("ejecutar ahora" en segundo plano).
    Retorna {"success": ..., "title": ..., "error": ..., "improved": ...}.
    """
    logger.info("[Celery] generate_for_site sitio=%d", site_id)
    return run_async(_generate_for_site_async(site_id, keyword_ids))
