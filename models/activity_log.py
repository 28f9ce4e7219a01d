"""
BlogFleet - Modelo de ActivityLog.
Bitácora de eventos por sitio (artículos generados, errores del scheduler, etc.).
"""
from typing import Optional
from sqlalchemy import String, Text, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class ActivityLog(Base, TimestampMixin):
    """Evento registrado para un sitio."""
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    site_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("sites.id", ondelete="CASCADE"), index=True
    )

    tipo: Mapped[str] = mapped_column(String(50), nullable=False)  # article_generated, ...
    mensaje: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, tipo='{self.tipo}')>"
