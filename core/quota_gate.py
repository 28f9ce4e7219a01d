"""
BlogFleet - Quota Gate.

Decide si un sitio puede generar un artículo nuevo ahora mismo, a partir de
su cadencia y de los conteos que entrega el Store. Es una función pura: los
conteos los calcula quien llama.

Dos puntos de llamada, una sola implementación:
  - Ruta programada (cron):        bypass_cadence_window=False
  - Ejecución manual / en masa:    bypass_cadence_window=True
Las cuotas numéricas (día / semana) NUNCA se saltan.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings
from core.exceptions import QuotaExceeded

logger = logging.getLogger(__name__)

ALL_WEEKDAYS = frozenset(range(7))
ALL_HOURS = frozenset(range(24))


@dataclass(frozen=True)
class CadenceConfig:
    """Cadencia de un sitio, en forma de valor inmutable."""
    enabled: bool = True
    auto_publish: bool = False
    max_per_day: int = 5
    max_per_week: int = 20
    allowed_weekdays: frozenset = ALL_WEEKDAYS  # 0 = domingo
    allowed_hours: frozenset = ALL_HOURS
    selected_keyword_ids: tuple = ()
    enable_improvement: bool = False
    improvement_model: Optional[str] = None
    improvement_mode: Optional[str] = None

    def __post_init__(self):
        for name in ("max_per_day", "max_per_week"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} debe ser un entero positivo (recibido: {value!r})")

    @classmethod
    def from_model(cls, config) -> "CadenceConfig":
        """Construye la cadencia desde un SchedulerConfig de la BD."""
        settings = get_settings()
        return cls(
            enabled=bool(config.enabled),
            auto_publish=bool(config.auto_publish),
            max_per_day=config.max_por_dia or settings.default_max_per_day,
            max_per_week=config.max_por_semana or settings.default_max_per_week,
            allowed_weekdays=frozenset(config.dias_semana or []),
            allowed_hours=frozenset(config.horas_publicacion or []),
            selected_keyword_ids=tuple(config.keyword_ids or []),
            enable_improvement=bool(config.mejora_habilitada),
            improvement_model=config.mejora_modelo,
            improvement_mode=config.mejora_modo,
        )


@dataclass(frozen=True)
class QuotaCounts:
    """Artículos creados hoy y esta semana para un sitio."""
    today: int = 0
    this_week: int = 0


@dataclass
class QuotaDecision:
    """Resultado detallado de evaluar la cuota."""
    eligible: bool
    reason: Optional[str] = None
    counts: QuotaCounts = field(default_factory=QuotaCounts)


# ---------------------------------------------------------------------------
# Tiempo local del scheduler
# ---------------------------------------------------------------------------

def local_now(now: Optional[datetime] = None) -> datetime:
    """Hora actual (o `now`) en la zona horaria del scheduler."""
    tz = ZoneInfo(get_settings().scheduler_timezone)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def weekday_sunday_first(now: datetime) -> int:
    """Día de la semana con 0 = domingo ... 6 = sábado."""
    return now.isoweekday() % 7


def start_of_day(now: datetime) -> datetime:
    """Medianoche local del día de `now`."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_iso_week(now: datetime) -> datetime:
    """Lunes 00:00 de la semana ISO de `now`."""
    return start_of_day(now) - timedelta(days=now.isoweekday() - 1)


# ---------------------------------------------------------------------------
# Decisión
# ---------------------------------------------------------------------------

def evaluate(
    site_id: int,
    cadence: CadenceConfig,
    counts_today: int,
    counts_this_week: int,
    now: datetime,
    bypass_cadence_window: bool = False,
) -> QuotaDecision:
    """Evalúa la cuota y devuelve el motivo del rechazo, si lo hay."""
    counts = QuotaCounts(today=counts_today, this_week=counts_this_week)

    if not cadence.enabled:
        return QuotaDecision(False, "scheduler desactivado", counts)

    if not bypass_cadence_window:
        weekday = weekday_sunday_first(now)
        if weekday not in cadence.allowed_weekdays:
            return QuotaDecision(False, f"día {weekday} fuera de la ventana", counts)
        if now.hour not in cadence.allowed_hours:
            return QuotaDecision(False, f"hora {now.hour} fuera de la ventana", counts)

    if counts_today >= cadence.max_per_day:
        return QuotaDecision(
            False, f"límite diario alcanzado ({counts_today}/{cadence.max_per_day})", counts
        )
    if counts_this_week >= cadence.max_per_week:
        return QuotaDecision(
            False, f"límite semanal alcanzado ({counts_this_week}/{cadence.max_per_week})", counts
        )

    return QuotaDecision(True, None, counts)


def is_eligible(
    site_id: int,
    cadence: CadenceConfig,
    counts_today: int,
    counts_this_week: int,
    now: datetime,
    bypass_cadence_window: bool = False,
) -> bool:
    """True si el sitio puede generar un artículo nuevo ahora."""
    return evaluate(
        site_id, cadence, counts_today, counts_this_week, now, bypass_cadence_window
    ).eligible


def check_quota(
    site_id: int,
    cadence: CadenceConfig,
    counts: QuotaCounts,
    now: datetime,
    bypass_cadence_window: bool = False,
) -> None:
    """
    Igual que is_eligible pero lanza QuotaExceeded con el motivo.

    Raises:
        QuotaExceeded: Si el sitio no es elegible.
    """
    decision = evaluate(
        site_id, cadence, counts.today, counts.this_week, now, bypass_cadence_window
    )
    if not decision.eligible:
        logger.info("[QuotaGate] Sitio #%s bloqueado: %s", site_id, decision.reason)
        raise QuotaExceeded(site_id, decision.reason)


async def load_counts(store, site_id: int, now: datetime) -> QuotaCounts:
    """Pide al Store los conteos de hoy y de la semana ISO en curso."""
    today = await store.count_articles_since(site_id, start_of_day(now))
    week = await store.count_articles_since(site_id, start_of_iso_week(now))
    return QuotaCounts(today=today, this_week=week)
