"""
BlogFleet - Tareas Celery.
"""
from core.tasks.generation import generate_scheduled_posts, generate_for_site

__all__ = ["generate_scheduled_posts", "generate_for_site"]
