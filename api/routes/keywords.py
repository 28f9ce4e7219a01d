"""
BlogFleet - Mantenimiento de keywords y artículos.
Importación con deduplicación, archivado y borrado de artículos.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.auth import verify_admin_key
from api.dependencies import get_store
from core.store import Store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Keywords"],
    dependencies=[Depends(verify_admin_key)],
)


class KeywordIn(BaseModel):
    keyword: str
    prioridad: int = 0
    cluster: Optional[str] = None


class ImportKeywordsBody(BaseModel):
    site_id: Optional[int] = None  # None = pool global
    keywords: list[KeywordIn]


class ArchiveKeywordsBody(BaseModel):
    keyword_ids: list[int]


@router.post("/keywords/import")
async def import_keywords(body: ImportKeywordsBody, store: Store = Depends(get_store)):
    """Importa keywords ignorando duplicadas (sin distinguir mayúsculas)."""
    result = await store.import_keywords(
        body.site_id, [kw.model_dump() for kw in body.keywords]
    )
    return {"imported": result.imported, "duplicates": result.duplicates}


@router.post("/keywords/archive")
async def archive_keywords(body: ArchiveKeywordsBody, store: Store = Depends(get_store)):
    archived = await store.archive_keywords(body.keyword_ids)
    return {"archived": archived}


@router.delete("/articles/{article_id}")
async def delete_article(article_id: int, store: Store = Depends(get_store)):
    """Borra un artículo; su keyword vuelve a pendiente."""
    if not await store.delete_article(article_id):
        raise HTTPException(status_code=404, detail="Artículo no encontrado")
    return {"deleted": True, "article_id": article_id}
