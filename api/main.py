"""
BlogFleet - Aplicación principal FastAPI.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from models.base import init_db
from utils.logger import setup_logging
from api.routes.scheduler import router as scheduler_router
from api.routes.keywords import router as keywords_router
from api.routes.tasks import router as tasks_router
from core.run_manager import RunManager
from core.tasks.generation import build_coordinator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Eventos de inicio y cierre de la aplicación."""
    # Startup
    setup_logging()
    logger.info("BlogFleet iniciando...")
    await init_db()
    logger.info("Base de datos inicializada")
    app.state.run_manager = RunManager(build_coordinator())
    yield
    # Shutdown
    manager = app.state.run_manager
    if manager.is_active:
        logger.info("Cancelando generación en masa en curso...")
        manager.cancel()
        await manager.wait()
    logger.info("BlogFleet cerrando...")


app = FastAPI(
    title="BlogFleet",
    description="Orquestador de generación de artículos para una flota de blogs",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Rutas API ---
app.include_router(scheduler_router)
app.include_router(keywords_router)

# --- Tareas Celery ---
app.include_router(tasks_router)


@app.get("/")
async def root():
    """Endpoint raíz - info de la API."""
    return {
        "app": "BlogFleet",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}
