"""
BlogFleet - Modelo de Sitio (tenant).
Cada sitio es un blog con marca propia y su propia configuración de scheduler.
"""
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


class Site(Base, TimestampMixin):
    """Blog gestionado por la plataforma."""
    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # --- Identidad ---
    nombre: Mapped[str] = mapped_column(String(200), nullable=False)
    dominio: Mapped[str] = mapped_column(String(300), nullable=False, unique=True, index=True)
    idioma: Mapped[str] = mapped_column(String(5), default="es")
    activo: Mapped[bool] = mapped_column(Boolean, default=True)

    # --- Relaciones ---
    scheduler_config = relationship(
        "SchedulerConfig",
        back_populates="site",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Site(id={self.id}, nombre='{self.nombre}', dominio='{self.dominio}')>"
