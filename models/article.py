"""
BlogFleet - Modelo de Artículo.
Representa un artículo generado para un sitio.
"""
import enum
from typing import Optional
from datetime import datetime
from sqlalchemy import (
    String, Text, JSON, DateTime, ForeignKey, Boolean, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class ArticleEstado(str, enum.Enum):
    """Estados editoriales de un artículo."""
    BORRADOR = "borrador"
    LISTO = "listo"
    PUBLICADO = "publicado"
    DESPUBLICADO = "despublicado"


class Article(Base, TimestampMixin):
    """Artículo de blog generado."""
    __tablename__ = "articles"
    __table_args__ = (UniqueConstraint("site_id", "slug", name="uq_articles_site_slug"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    site_id: Mapped[int] = mapped_column(
        ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True
    )
    keyword_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("keywords.id", ondelete="SET NULL"), index=True
    )

    # --- Contenido ---
    titulo: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False)
    contenido: Mapped[str] = mapped_column(Text, nullable=False)
    resumen: Mapped[Optional[str]] = mapped_column(Text)
    faq: Mapped[Optional[list]] = mapped_column(JSON, default=list)  # [{question, answer}]

    # --- Media ---
    imagen_url: Mapped[Optional[str]] = mapped_column(String(500))
    imagen_alt: Mapped[Optional[str]] = mapped_column(String(300))

    # --- Estado y publicación ---
    estado: Mapped[ArticleEstado] = mapped_column(
        SAEnum(
            ArticleEstado,
            native_enum=False,
            length=30,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=ArticleEstado.BORRADOR,
    )
    fecha_publicado: Mapped[Optional[datetime]] = mapped_column(DateTime)
    mejorado: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, titulo='{self.titulo[:50]}', estado='{self.estado.value}')>"
