"""
BlogFleet - Modelos de base de datos.
"""
from models.base import Base, TimestampMixin, init_db, engine, async_session
from models.site import Site
from models.scheduler_config import SchedulerConfig
from models.keyword import Keyword, KeywordEstado
from models.article import Article, ArticleEstado
from models.activity_log import ActivityLog

__all__ = [
    "Base", "TimestampMixin", "init_db", "engine", "async_session",
    "Site", "SchedulerConfig", "Keyword", "KeywordEstado",
    "Article", "ArticleEstado", "ActivityLog",
]
