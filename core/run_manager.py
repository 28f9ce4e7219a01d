"""
BlogFleet - Run Manager.

Dueño de la ejecución en masa en curso dentro de un proceso web. Guarda el
ProgressReporter y la tarea asyncio de la ejecución; cada ejecución nueva
reemplaza el estado anterior por completo. Vive en app.state, no es global.
"""
import asyncio
import logging
from typing import Optional

from core.progress import ProgressReporter
from core.run_coordinator import RunCoordinator, RunSummary, RunTask

logger = logging.getLogger(__name__)


class RunAlreadyActive(Exception):
    """Ya hay una ejecución en masa en curso."""


class RunManager:
    """
    Uso:
        manager = RunManager(coordinator)
        await manager.start(prepared.tasks, total_budget=10)
        manager.reporter.snapshot()
        manager.cancel()
    """

    def __init__(self, coordinator: RunCoordinator):
        self.coordinator = coordinator
        self.reporter = ProgressReporter()
        self.last_summary: Optional[RunSummary] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, tasks: list[RunTask], total_budget: int) -> asyncio.Task:
        """
        Lanza la ejecución en segundo plano.

        Raises:
            RunAlreadyActive: Si otra ejecución sigue en curso.
        """
        if self.is_active:
            raise RunAlreadyActive("Ya hay una generación en masa en curso")

        self.reporter = ProgressReporter()
        self.last_summary = None
        self._task = asyncio.create_task(self._run(tasks, total_budget, self.reporter))
        return self._task

    async def _run(self, tasks: list[RunTask], total_budget: int, reporter: ProgressReporter):
        try:
            self.last_summary = await self.coordinator.execute(tasks, total_budget, reporter)
            return self.last_summary
        except asyncio.CancelledError:
            reporter.finish(cancelled=True)
            raise
        except Exception:
            logger.exception("[RunManager] La ejecución terminó con un error inesperado")
            reporter.finish()
            raise

    def cancel(self) -> bool:
        """Pide cancelar la ejecución en curso. False si no había ninguna."""
        if not self.is_active:
            return False
        if not self.reporter.state.is_running:
            # Ninguna iteración empezó todavía
            self._task.cancel()
            self.reporter.finish(cancelled=True)
        self.reporter.request_cancel()
        return True

    async def wait(self) -> Optional[RunSummary]:
        """Espera a que termine la ejecución en curso (tests / apagado)."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        return self.last_summary
