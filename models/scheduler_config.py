"""
BlogFleet - Modelo SchedulerConfig.
Cadencia de generación automática de un sitio (relación 1:1 con Site).
"""
from typing import Optional
from sqlalchemy import String, Integer, Boolean, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


class SchedulerConfig(Base, TimestampMixin):
    """Configuración de cadencia y cuotas de un sitio."""
    __tablename__ = "scheduler_configs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    site_id: Mapped[int] = mapped_column(
        ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    # --- Estado ---
    enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    auto_publish: Mapped[bool] = mapped_column(Boolean, default=False)

    # --- Cuotas ---
    max_por_dia: Mapped[int] = mapped_column(Integer, default=5)
    max_por_semana: Mapped[int] = mapped_column(Integer, default=20)

    # --- Ventana de publicación ---
    dias_semana: Mapped[Optional[list]] = mapped_column(
        JSON, default=list
    )  # 0 = domingo ... 6 = sábado
    horas_publicacion: Mapped[Optional[list]] = mapped_column(JSON, default=list)  # 0-23

    # --- Keywords seleccionadas para este sitio ---
    keyword_ids: Mapped[Optional[list]] = mapped_column(JSON, default=list)

    # --- Pasada de mejora (opcional) ---
    mejora_habilitada: Mapped[bool] = mapped_column(Boolean, default=False)
    mejora_modelo: Mapped[Optional[str]] = mapped_column(String(100))
    mejora_modo: Mapped[Optional[str]] = mapped_column(String(50))  # seo-classic, ai-search, full-pbn

    site = relationship("Site", back_populates="scheduler_config")

    def __repr__(self) -> str:
        return (
            f"<SchedulerConfig(site_id={self.site_id}, enabled={self.enabled}, "
            f"max_por_dia={self.max_por_dia})>"
        )
