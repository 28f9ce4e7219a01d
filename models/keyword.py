"""
BlogFleet - Modelo de Keyword.
Una keyword pertenece a un sitio o al pool global (site_id nulo)
y eventualmente se convierte en un artículo.
"""
import enum
from typing import Optional
from sqlalchemy import String, Integer, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class KeywordEstado(str, enum.Enum):
    """Ciclo de vida de una keyword."""
    PENDIENTE = "pendiente"
    GENERANDO = "generando"
    GENERADO = "generado"
    PUBLICADO = "publicado"
    ARCHIVADO = "archivado"


class Keyword(Base, TimestampMixin):
    """Keyword a convertir en artículo."""
    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    site_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("sites.id", ondelete="CASCADE"), index=True
    )  # None = pool global

    keyword: Mapped[str] = mapped_column(String(300), nullable=False)
    prioridad: Mapped[int] = mapped_column(Integer, default=0)  # mayor = preferida
    cluster: Mapped[Optional[str]] = mapped_column(String(200))

    estado: Mapped[KeywordEstado] = mapped_column(
        SAEnum(
            KeywordEstado,
            native_enum=False,
            length=30,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=KeywordEstado.PENDIENTE,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Keyword(id={self.id}, keyword='{self.keyword}', estado='{self.estado.value}')>"
