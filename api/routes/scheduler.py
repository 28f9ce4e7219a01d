"""
BlogFleet - Endpoints del scheduler y de la generación en masa.
Todas las rutas requieren el header X-Admin-Key.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.auth import verify_admin_key
from api.dependencies import get_coordinator, get_run_manager
from core.generators import ImprovementOptions
from core.run_coordinator import RunCoordinator
from core.run_manager import RunAlreadyActive, RunManager

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/scheduler",
    tags=["Scheduler"],
    dependencies=[Depends(verify_admin_key)],
)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class ImprovementBody(BaseModel):
    model: str
    mode: str

    def to_options(self) -> ImprovementOptions:
        return ImprovementOptions(model=self.model, mode=self.mode)


class PrepareRunBody(BaseModel):
    site_ids: list[int]
    total: int = Field(..., description="Artículos a generar en total")
    keyword_ids: Optional[list[int]] = None
    auto_publish: Optional[bool] = None
    improvement: Optional[ImprovementBody] = None


class RunOneBody(BaseModel):
    site_id: int
    keyword_ids: Optional[list[int]] = None
    auto_publish: Optional[bool] = None
    improvement: Optional[ImprovementBody] = None


async def _prepare(body: PrepareRunBody, coordinator: RunCoordinator):
    try:
        return await coordinator.prepare_run(
            body.site_ids,
            body.total,
            keyword_ids=body.keyword_ids,
            auto_publish=body.auto_publish,
            improvement=body.improvement.to_options() if body.improvement else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/prepare")
async def prepare_run(body: PrepareRunBody, coordinator: RunCoordinator = Depends(get_coordinator)):
    """Valida sitios y keywords y devuelve el reparto, sin generar nada."""
    prepared = await _prepare(body, coordinator)
    return {
        "tasks": [task.to_dict() for task in prepared.tasks],
        "errors": prepared.errors,
        "total": prepared.total_budget,
    }


@router.post("/runs", status_code=202)
async def start_run(body: PrepareRunBody, manager: RunManager = Depends(get_run_manager)):
    """Prepara y lanza una generación en masa en segundo plano."""
    if manager.is_active:
        raise HTTPException(status_code=409, detail="Ya hay una generación en masa en curso")

    prepared = await _prepare(body, manager.coordinator)
    if not prepared.tasks:
        raise HTTPException(
            status_code=422,
            detail={"message": "Ningún sitio válido", "errors": prepared.errors},
        )

    try:
        await manager.start(prepared.tasks, prepared.total_budget)
    except RunAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info("[API] Generación en masa lanzada: %d sitios, %d artículos",
                len(prepared.tasks), prepared.total_budget)
    return {
        "status": "started",
        "tasks": [task.to_dict() for task in prepared.tasks],
        "errors": prepared.errors,
        "total": prepared.total_budget,
    }


@router.get("/progress")
async def get_progress(manager: RunManager = Depends(get_run_manager)):
    """Estado de la ejecución en curso (o de la última)."""
    snapshot = manager.reporter.snapshot()
    snapshot["recent"] = manager.reporter.recent(3)
    snapshot["is_active"] = manager.is_active
    return snapshot


@router.post("/cancel")
async def cancel_run(manager: RunManager = Depends(get_run_manager)):
    """Pide cancelar la ejecución en curso; efectiva en la siguiente iteración."""
    return {"cancelled": manager.cancel()}


@router.post("/run-one")
async def run_one(body: RunOneBody, coordinator: RunCoordinator = Depends(get_coordinator)):
    """Ejecutar ahora: un artículo para un sitio, ignorando la ventana de días/horas."""
    result = await coordinator.run_one(
        body.site_id,
        keyword_ids=body.keyword_ids,
        auto_publish=body.auto_publish,
        improvement=body.improvement.to_options() if body.improvement else None,
    )
    return {
        "success": result.success,
        "title": result.title,
        "error": result.error,
        "improved": result.improved,
    }
