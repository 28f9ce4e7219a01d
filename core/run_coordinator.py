"""
BlogFleet - Run Coordinator.

Orquesta una ejecución en masa sobre varios sitios:

  prepare_run → valida sitios y keywords, reparte el presupuesto
  execute     → bucle secuencial sitio a sitio, keyword a keyword
  run_one     → una sola ejecución del pipeline (manual o programada)

Reglas del bucle:
  - El presupuesto total se reparte a partes iguales; el resto va a los
    primeros sitios. La suma de cuotas es exactamente el total.
  - Sitios en el orden recibido. Si un sitio se queda sin keywords, su
    cuota sobrante NO se redistribuye.
  - La cancelación se consulta al inicio de cada iteración.
  - Un fallo del pipeline se registra y el bucle continúa.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from config import get_config, get_settings
from core.exceptions import AllocationError, CancellationRequested, QuotaExceeded
from core.generation_pipeline import GenerationPipeline, PipelineOptions, PipelineResult
from core.generators import ImprovementOptions
from core.keyword_allocator import KeywordAllocator
from core.progress import ProgressReporter, RunResultEntry
from core.quota_gate import CadenceConfig, check_quota, load_counts, local_now
from core.store import Store, SiteRow
from models.keyword import KeywordEstado
from utils.text import truncate_label

logger = logging.getLogger(__name__)

NO_KEYWORD_AVAILABLE = "Sin keywords pendientes disponibles"


def compute_shares(total_budget: int, n_sites: int) -> list[int]:
    """
    Reparte `total_budget` entre `n_sites`.
    compute_shares(10, 3) == [4, 3, 3]
    """
    if n_sites <= 0:
        return []
    if total_budget < 0:
        raise ValueError("El presupuesto no puede ser negativo")
    base, remainder = divmod(total_budget, n_sites)
    return [base + 1 if i < remainder else base for i in range(n_sites)]


def default_cadence() -> CadenceConfig:
    """Cadencia para sitios sin configuración de scheduler."""
    settings = get_settings()
    return CadenceConfig(
        enabled=True,
        max_per_day=settings.default_max_per_day,
        max_per_week=settings.default_max_per_week,
    )


def improvement_from_cadence(cadence: CadenceConfig) -> Optional[ImprovementOptions]:
    """Opciones de mejora configuradas en el sitio (None si está desactivada)."""
    if not cadence.enable_improvement:
        return None
    config = get_config()
    return ImprovementOptions(
        model=cadence.improvement_model or config.get("default_improvement_model", "haiku"),
        mode=cadence.improvement_mode or config.get("default_improvement_mode", "full-pbn"),
    )


@dataclass
class RunTask:
    """Trabajo preparado para un sitio."""
    site_id: int
    site_name: str
    keyword_ids: list[int]
    auto_publish: bool
    share_count: int = 0
    improvement: Optional[ImprovementOptions] = None
    cadence: CadenceConfig = field(default_factory=default_cadence)

    def to_dict(self) -> dict:
        return {
            "site_id": self.site_id,
            "site_name": self.site_name,
            "keyword_ids": list(self.keyword_ids),
            "auto_publish": self.auto_publish,
            "share_count": self.share_count,
            "improvement": (
                {"model": self.improvement.model, "mode": self.improvement.mode}
                if self.improvement else None
            ),
        }


@dataclass
class PreparedRun:
    tasks: list[RunTask]
    errors: list[str]
    total_budget: int


@dataclass
class RunSummary:
    total: int
    succeeded: int
    failed: int
    cancelled: bool


@dataclass
class RunOneResult:
    success: bool
    title: Optional[str] = None
    error: Optional[str] = None
    improved: bool = False


class RunCoordinator:
    """
    Coordinador de ejecuciones.

    Uso:
        coordinator = RunCoordinator(store, pipeline)
        prepared = await coordinator.prepare_run([1, 2, 3], total_budget=10)
        summary = await coordinator.execute(prepared.tasks, 10, reporter)
    """

    def __init__(
        self,
        store: Store,
        pipeline: GenerationPipeline,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.pipeline = pipeline
        self.allocator = KeywordAllocator(store)
        self.clock = clock or local_now

    # =================================================================
    # PREPARAR
    # =================================================================

    async def prepare_run(
        self,
        site_ids: list[int],
        total_budget: int,
        keyword_ids: Optional[list[int]] = None,
        auto_publish: Optional[bool] = None,
        improvement: Optional[ImprovementOptions] = None,
    ) -> PreparedRun:
        """
        Valida la ejecución y reparte el presupuesto.
        Los sitios sin keywords pendientes seleccionadas se rechazan con un error por
        sitio, sin abortar la preparación.

        Raises:
            ValueError: Si no hay sitios o el presupuesto es menor que 1.
        """
        if not site_ids:
            raise ValueError("Selecciona al menos un sitio")
        if total_budget < 1:
            raise ValueError("El número de artículos debe ser al menos 1")

        tasks: list[RunTask] = []
        errors: list[str] = []

        for site_id in dict.fromkeys(site_ids):
            site = await self.store.get_site(site_id)
            if site is None:
                errors.append(f"Sitio #{site_id}: no encontrado")
                continue

            cadence = await self.store.get_cadence(site_id) or default_cadence()
            selected = list(keyword_ids) if keyword_ids is not None else list(cadence.selected_keyword_ids)
            rows = await self.store.get_keywords(selected)
            usable = [
                row.id for row in rows
                if row.site_id in (site_id, None) and row.estado is KeywordEstado.PENDIENTE
            ]

            if not usable:
                errors.append(f"{site.nombre}: sin keywords seleccionadas")
                continue

            tasks.append(
                RunTask(
                    site_id=site.id,
                    site_name=site.nombre,
                    keyword_ids=usable,
                    auto_publish=cadence.auto_publish if auto_publish is None else auto_publish,
                    improvement=improvement or improvement_from_cadence(cadence),
                    cadence=cadence,
                )
            )

        for task, share in zip(tasks, compute_shares(total_budget, len(tasks))):
            task.share_count = share

        logger.info(
            "[Coordinator] Preparado: %d sitios válidos, %d rechazados, %d artículos",
            len(tasks), len(errors), total_budget,
        )
        return PreparedRun(tasks=tasks, errors=errors, total_budget=total_budget)

    # =================================================================
    # EJECUTAR
    # =================================================================

    async def execute(
        self, tasks: list[RunTask], total_budget: int, reporter: ProgressReporter
    ) -> RunSummary:
        """
        Ejecuta el bucle completo. Nunca lanza por un fallo individual del
        pipeline; termina al agotar presupuesto, keywords o por cancelación.
        """
        shares = compute_shares(total_budget, len(tasks))
        total = sum(shares)
        reporter.start(total)

        succeeded = failed = 0
        cancelled = False

        try:
            for task, share in zip(tasks, shares):
                task.share_count = share
                site = SiteRow(id=task.site_id, nombre=task.site_name)

                for _ in range(share):
                    if reporter.cancel_requested:
                        raise CancellationRequested("Ejecución cancelada por el operador")

                    outcome = await self._iteration(task, site, reporter)
                    if outcome is None:
                        break  # sin cuota o sin keywords: siguiente sitio

                    if outcome.ok:
                        succeeded += 1
                        reporter.update(
                            completed=reporter.state.completed + 1,
                            result=RunResultEntry(site=task.site_name, title=outcome.title),
                        )
                    else:
                        failed += 1
                        label = truncate_label(
                            outcome.title or "", get_settings().error_label_max_length
                        )
                        reporter.update(
                            completed=reporter.state.completed + 1,
                            error=f"{label}: {outcome.error}",
                        )
        except CancellationRequested as e:
            cancelled = True
            logger.info("[Coordinator] %s", e)
        finally:
            reporter.finish(cancelled=cancelled)

        logger.info(
            "[Coordinator] Resumen: %d ok, %d errores, cancelada=%s", succeeded, failed, cancelled
        )
        return RunSummary(total=total, succeeded=succeeded, failed=failed, cancelled=cancelled)

    async def _iteration(
        self, task: RunTask, site: SiteRow, reporter: ProgressReporter
    ) -> Optional[PipelineResult]:
        """Una iteración: cuota → reserva → pipeline. None = dejar este sitio."""
        now = self.clock()
        try:
            counts = await load_counts(self.store, task.site_id, now)
            check_quota(task.site_id, task.cadence, counts, now, bypass_cadence_window=True)
            keyword = await self.allocator.allocate_next(task.site_id, task.keyword_ids)
        except QuotaExceeded as e:
            logger.info("[Coordinator] %s: %s", task.site_name, e.reason)
            return None
        except AllocationError as e:
            logger.warning("[Coordinator] %s: %s", task.site_name, e)
            return None
        except Exception as e:
            logger.error("[Coordinator] %s: error consultando el store: %s", task.site_name, e)
            return None

        if keyword is None:
            return None

        reporter.update(current_label=f"{task.site_name} · {truncate_label(keyword.keyword)}")
        options = PipelineOptions(auto_publish=task.auto_publish, improvement=task.improvement)
        return await self.pipeline.run(site, keyword, options)

    # =================================================================
    # UNA SOLA EJECUCIÓN
    # =================================================================

    async def run_one(
        self,
        site_id: int,
        keyword_ids: Optional[list[int]] = None,
        auto_publish: Optional[bool] = None,
        improvement: Optional[ImprovementOptions] = None,
        bypass_cadence_window: bool = True,
    ) -> RunOneResult:
        """
        Ejecuta el pipeline una vez para un sitio.

        La ruta manual ("ejecutar ahora") se salta la ventana de días/horas;
        la ruta programada no. Las cuotas numéricas se respetan siempre.
        """
        try:
            site = await self.store.get_site(site_id)
            cadence = await self.store.get_cadence(site_id) if site else None
        except Exception as e:
            logger.error("[Coordinator] Sitio #%s: error consultando el store: %s", site_id, e)
            return RunOneResult(success=False, error=f"Error consultando el store: {e}")

        if site is None:
            return RunOneResult(success=False, error=f"Sitio #{site_id} no encontrado")

        cadence = cadence or default_cadence()
        candidates = list(keyword_ids) if keyword_ids is not None else list(cadence.selected_keyword_ids)
        if not candidates:
            return RunOneResult(success=False, error=f"{site.nombre}: sin keywords seleccionadas")

        now = self.clock()
        try:
            counts = await load_counts(self.store, site_id, now)
            check_quota(site_id, cadence, counts, now, bypass_cadence_window=bypass_cadence_window)
            keyword = await self.allocator.allocate_next(site_id, candidates)
        except QuotaExceeded as e:
            return RunOneResult(success=False, error=e.reason)
        except AllocationError as e:
            return RunOneResult(success=False, error=str(e))
        except Exception as e:
            logger.error("[Coordinator] %s: error consultando el store: %s", site.nombre, e)
            return RunOneResult(success=False, error=f"Error consultando el store: {e}")

        if keyword is None:
            return RunOneResult(success=False, error=NO_KEYWORD_AVAILABLE)

        options = PipelineOptions(
            auto_publish=cadence.auto_publish if auto_publish is None else auto_publish,
            improvement=improvement or improvement_from_cadence(cadence),
        )
        result = await self.pipeline.run(site, keyword, options)
        return RunOneResult(
            success=result.ok,
            title=result.title,
            error=result.error,
            improved=result.improved,
        )
