"""
BlogFleet - Taxonomía de errores del orquestador.

Solo GenerationError y PersistenceError llegan a la lista de errores
visible para el operador. El resto ajusta el flujo de control en silencio.
"""


class BlogFleetError(Exception):
    """Base de todos los errores de dominio."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message or self.__class__.__name__


class QuotaExceeded(BlogFleetError):
    """El sitio no puede generar más artículos ahora (cuota o ventana)."""

    def __init__(self, site_id: int, reason: str):
        super().__init__(f"Sitio #{site_id}: {reason}")
        self.site_id = site_id
        self.reason = reason


class AllocationError(BlogFleetError):
    """No se pudo reservar una keyword (sin candidatas o store no disponible)."""


class GenerationError(BlogFleetError):
    """Falló la generación del contenido principal."""


class ImprovementError(BlogFleetError):
    """Falló la pasada de mejora. Nunca es fatal para el pipeline."""


class PersistenceError(BlogFleetError):
    """No se pudo guardar el artículo."""


class CancellationRequested(BlogFleetError):
    """El operador pidió cancelar la ejecución en curso."""
