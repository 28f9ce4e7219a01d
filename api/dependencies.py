"""
BlogFleet - Dependencias compartidas de la API.
El RunManager vive en app.state (uno por proceso web); el coordinador y el
Store se obtienen a partir de él.
"""
from fastapi import Depends, Request

from core.run_coordinator import RunCoordinator
from core.run_manager import RunManager
from core.store import Store


def get_run_manager(request: Request) -> RunManager:
    state = request.app.state
    manager = getattr(state, "run_manager", None)
    if manager is None:
        from core.tasks.generation import build_coordinator
        manager = RunManager(build_coordinator())
        state.run_manager = manager
    return manager


def get_coordinator(manager: RunManager = Depends(get_run_manager)) -> RunCoordinator:
    return manager.coordinator


def get_store(coordinator: RunCoordinator = Depends(get_coordinator)) -> Store:
    return coordinator.store
