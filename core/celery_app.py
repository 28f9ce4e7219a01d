"""
BlogFleet - Configuración de Celery.
Worker para la generación programada (cron) de artículos.
"""
import asyncio

from celery import Celery
from celery.schedules import crontab

from config import get_settings

settings = get_settings()

# --- Instancia principal ---
celery_app = Celery("blogfleet")

celery_app.conf.update(
    broker_url=settings.redis_url,
    result_backend=settings.redis_url,
    timezone=settings.scheduler_timezone,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    task_acks_late=True,
    broker_connection_timeout=5,
    broker_connection_retry_on_startup=False,
    redis_socket_connect_timeout=5,
    redis_socket_timeout=5,
)

# --- Auto-discover de tareas ---
celery_app.autodiscover_tasks(["core.tasks"])

# --- Beat schedule (tareas periódicas) ---
celery_app.conf.beat_schedule = {
    # Cada hora en punto: la ventana de días/horas de cada sitio decide si genera
    "generate-scheduled-posts": {
        "task": "core.tasks.generation.generate_scheduled_posts",
        "schedule": crontab(minute=0),
    },
}


# --- Helper para ejecutar coroutines async desde tareas síncronas de Celery ---
def run_async(coro):
    """
    Ejecuta una coroutine async desde un contexto síncrono (Celery worker).

    Uso:
        @celery_app.task
        def my_task():
            return run_async(some_async_function())
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
