"""
BlogFleet - Store.

Acceso fila a fila a sitios, keywords, artículos y bitácora. No se asume
ninguna transacción que abarque las llamadas remotas a la IA: cada método
abre y cierra su propia sesión.

La reserva de keywords (claim_keyword) es un UPDATE condicional
(`WHERE estado = 'pendiente'`): solo una llamada concurrente puede ganarla.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import PersistenceError
from core.quota_gate import CadenceConfig
from models.activity_log import ActivityLog
from models.article import Article, ArticleEstado
from models.keyword import Keyword, KeywordEstado
from models.scheduler_config import SchedulerConfig
from models.site import Site

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Filas que viajan entre el Store y el orquestador
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiteRow:
    id: int
    nombre: str
    dominio: str = ""


@dataclass(frozen=True)
class KeywordRow:
    id: int
    site_id: Optional[int]
    keyword: str
    estado: KeywordEstado
    prioridad: int = 0
    cluster: Optional[str] = None


@dataclass
class ArticlePayload:
    """Datos de un artículo listo para guardarse."""
    titulo: str
    slug: str
    contenido: str
    resumen: str = ""
    faq: list = field(default_factory=list)
    imagen_url: Optional[str] = None
    imagen_alt: Optional[str] = None
    estado: ArticleEstado = ArticleEstado.BORRADOR
    fecha_publicado: Optional[datetime] = None
    mejorado: bool = False


@dataclass(frozen=True)
class ArticleRow:
    id: int
    site_id: int
    keyword_id: Optional[int]
    titulo: str
    slug: str
    estado: ArticleEstado
    fecha_publicado: Optional[datetime] = None


@dataclass(frozen=True)
class ImportResult:
    imported: int
    duplicates: int


def clean_import_rows(rows: list[dict], existing: set[str]) -> tuple[list[dict], int]:
    """
    Limpia una importación de keywords.
    Quita vacías y duplicadas (sin distinguir mayúsculas), tanto contra las
    existentes como dentro de la propia importación.
    """
    seen: set[str] = set()
    nuevas = []
    duplicadas = 0
    for row in rows:
        texto = (row.get("keyword") or "").strip()
        if not texto:
            continue
        clave = texto.lower()
        if clave in existing or clave in seen:
            duplicadas += 1
            continue
        seen.add(clave)
        nuevas.append({**row, "keyword": texto})
    return nuevas, duplicadas


def _to_utc_naive(dt: datetime) -> datetime:
    """Las columnas DateTime se guardan en UTC sin tzinfo."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _keyword_row(kw: Keyword) -> KeywordRow:
    return KeywordRow(
        id=kw.id,
        site_id=kw.site_id,
        keyword=kw.keyword,
        estado=kw.estado,
        prioridad=kw.prioridad or 0,
        cluster=kw.cluster,
    )


def _article_row(article: Article) -> ArticleRow:
    return ArticleRow(
        id=article.id,
        site_id=article.site_id,
        keyword_id=article.keyword_id,
        titulo=article.titulo,
        slug=article.slug,
        estado=article.estado,
        fecha_publicado=article.fecha_publicado,
    )


# ---------------------------------------------------------------------------
# Interfaz
# ---------------------------------------------------------------------------

class Store(ABC):
    """Operaciones de persistencia que consume el orquestador."""

    @abstractmethod
    async def get_site(self, site_id: int) -> Optional[SiteRow]:
        ...

    @abstractmethod
    async def get_cadence(self, site_id: int) -> Optional[CadenceConfig]:
        ...

    @abstractmethod
    async def list_enabled_sites(self) -> list[tuple[SiteRow, CadenceConfig]]:
        ...

    @abstractmethod
    async def get_keywords(self, keyword_ids: list[int]) -> list[KeywordRow]:
        """Keywords por id, en el mismo orden que `keyword_ids` (ids inexistentes se omiten)."""

    @abstractmethod
    async def count_articles_since(self, site_id: int, since: datetime) -> int:
        ...

    @abstractmethod
    async def claim_keyword(self, keyword_id: int) -> bool:
        """pendiente → generando. False si ya estaba reservada o no estaba pendiente."""

    @abstractmethod
    async def release_keyword(self, keyword_id: int) -> None:
        """Devuelve la keyword a pendiente."""

    @abstractmethod
    async def mark_keyword_generated(self, keyword_id: int, estado: KeywordEstado) -> None:
        ...

    @abstractmethod
    async def slug_exists(self, site_id: int, slug: str) -> bool:
        ...

    @abstractmethod
    async def insert_article(
        self, site_id: int, keyword_id: Optional[int], payload: ArticlePayload
    ) -> ArticleRow:
        """
        Raises:
            PersistenceError: Si el artículo no se pudo guardar.
        """

    @abstractmethod
    async def log_activity(
        self, site_id: Optional[int], tipo: str, mensaje: str, metadata: Optional[dict] = None
    ) -> None:
        ...

    @abstractmethod
    async def delete_article(self, article_id: int) -> bool:
        """Borra el artículo y devuelve su keyword a pendiente."""

    @abstractmethod
    async def archive_keywords(self, keyword_ids: list[int]) -> int:
        ...

    @abstractmethod
    async def import_keywords(self, site_id: Optional[int], rows: list[dict]) -> ImportResult:
        ...


# ---------------------------------------------------------------------------
# Implementación SQLAlchemy
# ---------------------------------------------------------------------------

class SQLAlchemyStore(Store):
    """
    Store sobre la BD relacional.

    Uso:
        store = SQLAlchemyStore()                    # usa models.base.async_session
        store = SQLAlchemyStore(session_factory)     # tests / otra BD
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        if session_factory is None:
            from models.base import async_session
            session_factory = async_session
        self.session_factory = session_factory

    async def get_site(self, site_id: int) -> Optional[SiteRow]:
        async with self.session_factory() as session:
            site = await session.get(Site, site_id)
            if not site:
                return None
            return SiteRow(id=site.id, nombre=site.nombre, dominio=site.dominio)

    async def get_cadence(self, site_id: int) -> Optional[CadenceConfig]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SchedulerConfig).where(SchedulerConfig.site_id == site_id)
            )
            config = result.scalar_one_or_none()
            return CadenceConfig.from_model(config) if config else None

    async def list_enabled_sites(self) -> list[tuple[SiteRow, CadenceConfig]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Site, SchedulerConfig)
                .join(SchedulerConfig, SchedulerConfig.site_id == Site.id)
                .where(SchedulerConfig.enabled.is_(True), Site.activo.is_(True))
                .order_by(Site.id)
            )
            return [
                (SiteRow(id=site.id, nombre=site.nombre, dominio=site.dominio),
                 CadenceConfig.from_model(config))
                for site, config in result.all()
            ]

    async def get_keywords(self, keyword_ids: list[int]) -> list[KeywordRow]:
        if not keyword_ids:
            return []
        async with self.session_factory() as session:
            result = await session.execute(select(Keyword).where(Keyword.id.in_(keyword_ids)))
            by_id = {kw.id: _keyword_row(kw) for kw in result.scalars().all()}
        return [by_id[kid] for kid in dict.fromkeys(keyword_ids) if kid in by_id]

    async def count_articles_since(self, site_id: int, since: datetime) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count(Article.id)).where(
                    Article.site_id == site_id,
                    Article.created_at >= _to_utc_naive(since),
                )
            )
            return result.scalar() or 0

    async def claim_keyword(self, keyword_id: int) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Keyword)
                .where(Keyword.id == keyword_id, Keyword.estado == KeywordEstado.PENDIENTE)
                .values(estado=KeywordEstado.GENERANDO)
            )
            await session.commit()
            return result.rowcount == 1

    async def release_keyword(self, keyword_id: int) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(Keyword)
                .where(Keyword.id == keyword_id)
                .values(estado=KeywordEstado.PENDIENTE)
            )
            await session.commit()

    async def mark_keyword_generated(self, keyword_id: int, estado: KeywordEstado) -> None:
        if estado not in (KeywordEstado.GENERADO, KeywordEstado.PUBLICADO):
            raise ValueError(f"Estado final inválido para keyword: {estado.value}")
        async with self.session_factory() as session:
            await session.execute(
                update(Keyword).where(Keyword.id == keyword_id).values(estado=estado)
            )
            await session.commit()

    async def slug_exists(self, site_id: int, slug: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count(Article.id)).where(
                    Article.site_id == site_id, Article.slug == slug
                )
            )
            return (result.scalar() or 0) > 0

    async def insert_article(
        self, site_id: int, keyword_id: Optional[int], payload: ArticlePayload
    ) -> ArticleRow:
        article = Article(
            site_id=site_id,
            keyword_id=keyword_id,
            titulo=payload.titulo,
            slug=payload.slug,
            contenido=payload.contenido,
            resumen=payload.resumen,
            faq=payload.faq,
            imagen_url=payload.imagen_url,
            imagen_alt=payload.imagen_alt,
            estado=payload.estado,
            fecha_publicado=_to_utc_naive(payload.fecha_publicado) if payload.fecha_publicado else None,
            mejorado=payload.mejorado,
        )
        async with self.session_factory() as session:
            try:
                session.add(article)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise PersistenceError(f"Slug duplicado o referencia inválida: {e.orig}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise PersistenceError(f"Error guardando artículo: {e}") from e
            return _article_row(article)

    async def log_activity(
        self, site_id: Optional[int], tipo: str, mensaje: str, metadata: Optional[dict] = None
    ) -> None:
        async with self.session_factory() as session:
            session.add(
                ActivityLog(site_id=site_id, tipo=tipo, mensaje=mensaje, metadata_json=metadata or {})
            )
            await session.commit()

    async def delete_article(self, article_id: int) -> bool:
        async with self.session_factory() as session:
            article = await session.get(Article, article_id)
            if not article:
                return False
            keyword_id = article.keyword_id
            if keyword_id:
                await session.execute(
                    update(Keyword)
                    .where(Keyword.id == keyword_id)
                    .values(estado=KeywordEstado.PENDIENTE)
                )
            await session.delete(article)
            await session.commit()
            logger.info("[Store] Artículo #%d borrado, keyword #%s liberada", article_id, keyword_id)
            return True

    async def archive_keywords(self, keyword_ids: list[int]) -> int:
        if not keyword_ids:
            return 0
        async with self.session_factory() as session:
            result = await session.execute(
                update(Keyword)
                .where(Keyword.id.in_(keyword_ids))
                .values(estado=KeywordEstado.ARCHIVADO)
            )
            await session.commit()
            return result.rowcount or 0

    async def import_keywords(self, site_id: Optional[int], rows: list[dict]) -> ImportResult:
        async with self.session_factory() as session:
            query = select(Keyword.keyword)
            if site_id is None:
                query = query.where(Keyword.site_id.is_(None))
            else:
                query = query.where(Keyword.site_id == site_id)
            result = await session.execute(query)
            existing = {texto.lower() for texto in result.scalars().all()}

            nuevas, duplicadas = clean_import_rows(rows, existing)
            for row in nuevas:
                session.add(
                    Keyword(
                        site_id=site_id,
                        keyword=row["keyword"],
                        prioridad=row.get("prioridad") or 0,
                        cluster=row.get("cluster"),
                        estado=KeywordEstado.PENDIENTE,
                    )
                )
            await session.commit()

        logger.info(
            "[Store] Importación sitio=%s: %d nuevas, %d duplicadas",
            site_id, len(nuevas), duplicadas,
        )
        return ImportResult(imported=len(nuevas), duplicates=duplicadas)
