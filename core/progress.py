"""
BlogFleet - Progress Reporter.

Estado observable de una ejecución en masa. Lo escribe un único bucle
secuencial (el Run Coordinator), así que no necesita locks. La UI lo lee
por polling o se suscribe a los cambios.

La cancelación es cooperativa: request_cancel() solo levanta una bandera
que el coordinador consulta al inicio de cada iteración.
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResultEntry:
    site: str
    title: str


@dataclass
class RunState:
    """Estado efímero de una ejecución (no se persiste)."""
    is_running: bool = False
    total: int = 0
    completed: int = 0
    current_label: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    results: list[RunResultEntry] = field(default_factory=list)
    cancel_requested: bool = False
    cancelled: bool = False


Listener = Callable[[dict], None]


class ProgressReporter:
    """
    Envoltorio mutable y observable de RunState.

    Uso:
        reporter = ProgressReporter()
        reporter.start(total=10)
        reporter.update(current_label="Mi Blog")
        reporter.update(completed=1, result=RunResultEntry("Mi Blog", "Título"))
        reporter.finish()
    """

    def __init__(self, state: Optional[RunState] = None):
        self.state = state or RunState()
        self._listeners: list[Listener] = []

    # --- Suscripción ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra un listener; devuelve la función para darlo de baja."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning("[Progress] Listener falló: %s", e)

    # --- Ciclo de vida ---

    @property
    def cancel_requested(self) -> bool:
        return self.state.cancel_requested

    def start(self, total: int) -> None:
        """Reemplaza el estado por uno nuevo en ejecución."""
        self.state = RunState(is_running=True, total=max(0, total))
        logger.info("[Progress] Ejecución iniciada: %d artículos", self.state.total)
        self._notify()

    def update(
        self,
        completed: Optional[int] = None,
        current_label: Optional[str] = None,
        error: Optional[str] = None,
        result: Optional[RunResultEntry] = None,
    ) -> None:
        """
        Fusiona cambios en el estado.
        `error` y `result` se añaden a sus listas; `completed` nunca retrocede
        ni supera `total`.
        """
        state = self.state
        if completed is not None:
            state.completed = min(max(state.completed, completed), state.total)
        if current_label is not None:
            state.current_label = current_label
        if error is not None:
            state.errors.append(error)
        if result is not None:
            state.results.append(result)
        self._notify()

    def request_cancel(self) -> None:
        """Pide cancelar. Idempotente; efectivo en la siguiente iteración."""
        if not self.state.cancel_requested:
            logger.info("[Progress] Cancelación solicitada")
        self.state.cancel_requested = True
        self._notify()

    def finish(self, cancelled: bool = False) -> None:
        """Cierra la ejecución. `cancelled` indica que se detuvo antes de tiempo."""
        self.state.is_running = False
        self.state.cancelled = cancelled
        self.state.current_label = None
        logger.info(
            "[Progress] Ejecución terminada: %d ok, %d errores",
            len(self.state.results), len(self.state.errors),
        )
        self._notify()

    # --- Lectura ---

    def snapshot(self) -> dict:
        """Copia del estado apta para JSON."""
        data = asdict(self.state)
        data["succeeded"] = len(self.state.results)
        data["failed"] = len(self.state.errors)
        return data

    def recent(self, n: int = 3) -> dict:
        """Últimos `n` resultados y errores, para mostrar en la UI."""
        return {
            "results": [asdict(r) for r in self.state.results[-n:]],
            "errors": self.state.errors[-n:],
        }
