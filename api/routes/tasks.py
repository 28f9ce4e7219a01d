"""
API endpoints para lanzar y monitorizar tareas Celery.
Todas las rutas requieren el header X-Admin-Key.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.auth import verify_admin_key
from core.celery_app import celery_app

router = APIRouter(
    prefix="/api/tasks",
    tags=["Tareas"],
    dependencies=[Depends(verify_admin_key)],
)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class GenerateScheduledBody(BaseModel):
    force: bool = False


class GenerateForSiteBody(BaseModel):
    site_id: int
    keyword_ids: Optional[list[int]] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/generate-scheduled", status_code=202)
async def trigger_generate_scheduled(body: Optional[GenerateScheduledBody] = None):
    """Encola generate_scheduled_posts (force=True ignora la ventana de días/horas)."""
    from core.tasks.generation import generate_scheduled_posts
    force = body.force if body else False
    result = generate_scheduled_posts.delay(force)
    return {
        "task_id": result.id,
        "task": "generate_scheduled_posts",
        "status": "queued",
        "force": force,
    }


@router.post("/generate-for-site", status_code=202)
async def trigger_generate_for_site(body: GenerateForSiteBody):
    """Encola la generación de un artículo para un sitio."""
    from core.tasks.generation import generate_for_site
    result = generate_for_site.delay(body.site_id, body.keyword_ids)
    return {
        "task_id": result.id,
        "task": "generate_for_site",
        "status": "queued",
        "site_id": body.site_id,
    }


@router.get("/{task_id}/status")
async def get_task_status(task_id: str):
    """Estado actual de una tarea Celery por ID."""
    result = celery_app.AsyncResult(task_id)
    response: dict[str, Any] = {
        "task_id": task_id,
        "status": result.status,
        "ready": result.ready(),
        "result": result.result if result.ready() else None,
    }
    if result.failed():
        response["error"] = str(result.result)
    return response
