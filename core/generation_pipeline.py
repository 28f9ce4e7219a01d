"""
BlogFleet - Generation Pipeline.

Para UNA keyword ya reservada:
  1. GENERAR   → ContentGenerator (fatal si falla)
  2. MEJORAR   → ContentImprover, opcional (best-effort)
  3. IMAGEN    → ImageGenerator (best-effort)
  4. GUARDAR   → Store.insert_article (fatal si falla)
  5. CERRAR    → keyword a generado / publicado

Garantía: al volver, la keyword nunca queda en "generando". Éxito o fallo,
la reserva se resuelve. Guardar es el último paso, así que no existen
artículos a medio escribir.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from config import get_settings
from core.exceptions import PersistenceError, ImprovementError
from core.generators import (
    ContentGenerator,
    ContentImprover,
    ImageGenerator,
    GeneratedDraft,
    GeneratedImage,
    ImprovementOptions,
    build_image_prompt,
)
from core.store import Store, SiteRow, KeywordRow, ArticlePayload, ArticleRow
from models.article import ArticleEstado
from models.keyword import KeywordEstado

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 50


@dataclass
class PipelineOptions:
    """Cómo debe ejecutarse el pipeline para un sitio."""
    auto_publish: bool = False
    improvement: Optional[ImprovementOptions] = None
    image_model: Optional[str] = None

    @property
    def enable_improvement(self) -> bool:
        return self.improvement is not None


@dataclass
class PipelineResult:
    ok: bool
    article: Optional[ArticleRow] = None
    title: Optional[str] = None
    error: Optional[str] = None
    improved: bool = False


def final_article_status(auto_publish: bool) -> tuple[ArticleEstado, KeywordEstado]:
    """Estados finales de artículo y keyword según auto-publicación."""
    if auto_publish:
        return ArticleEstado.PUBLICADO, KeywordEstado.PUBLICADO
    return ArticleEstado.BORRADOR, KeywordEstado.GENERADO


class GenerationPipeline:
    """
    Ejecuta generate → (improve) → (image) → persist para una keyword.

    Uso:
        pipeline = GenerationPipeline(store, generator, improver, images)
        result = await pipeline.run(site, keyword, PipelineOptions(auto_publish=True))
    """

    def __init__(
        self,
        store: Store,
        generator: ContentGenerator,
        improver: Optional[ContentImprover] = None,
        images: Optional[ImageGenerator] = None,
    ):
        self.store = store
        self.generator = generator
        self.improver = improver
        self.images = images

    async def run(
        self, site: SiteRow, keyword: KeywordRow, options: PipelineOptions
    ) -> PipelineResult:
        try:
            result, image, image_model = await self._generate_and_save(site, keyword, options)
        except asyncio.CancelledError:
            logger.warning("[Pipeline] %s: cancelado con '%s' reservada", site.nombre, keyword.keyword)
            await self._release(keyword)
            raise
        if not result.ok:
            return result

        article = result.article
        article_status, keyword_status = final_article_status(options.auto_publish)

        # --- 5. Cerrar la reserva ---
        try:
            await self.store.mark_keyword_generated(keyword.id, keyword_status)
        except Exception as e:
            # Nunca dejar la keyword en "generando"
            logger.error("[Pipeline] %s: no se pudo cerrar la keyword #%d: %s", site.nombre, keyword.id, e)
            await self._release(keyword)

        await self._log_activity(site, keyword, article, options, image, image_model, result.improved)

        logger.info(
            "[Pipeline] %s: artículo #%d '%s' (%s)",
            site.nombre, article.id, article.titulo, article_status.value,
        )
        return result

    async def _generate_and_save(
        self, site: SiteRow, keyword: KeywordRow, options: PipelineOptions
    ) -> tuple[PipelineResult, Optional[GeneratedImage], str]:
        """Pasos 1 a 4. Un fallo libera la reserva y devuelve ok=False."""
        image_model = options.image_model or get_settings().default_image_model

        # --- 1. Generar (fatal) ---
        try:
            draft = await self.generator.generate(keyword.keyword, keyword.cluster)
        except Exception as e:
            logger.error("[Pipeline] %s: error generando '%s': %s", site.nombre, keyword.keyword, e)
            await self._release(keyword)
            return PipelineResult(ok=False, title=keyword.keyword, error=str(e)), None, image_model

        # --- 2. Mejorar (best-effort) ---
        improved = False
        if options.enable_improvement:
            improved_draft = await self._try_improve(site, draft, options.improvement)
            if improved_draft is not None:
                draft = improved_draft
                improved = True

        # --- 3. Imagen (best-effort) ---
        image = await self._try_image(site, draft, keyword, image_model)

        # --- 4. Guardar (fatal) ---
        article_status, _ = final_article_status(options.auto_publish)
        try:
            slug = await self._unique_slug(site.id, draft.slug)
            payload = ArticlePayload(
                titulo=draft.title,
                slug=slug,
                contenido=draft.body,
                resumen=draft.summary,
                faq=draft.faq_as_json(),
                imagen_url=image.url if image else None,
                imagen_alt=image.alt if image else None,
                estado=article_status,
                fecha_publicado=datetime.now(timezone.utc) if options.auto_publish else None,
                mejorado=improved,
            )
            article = await self.store.insert_article(site.id, keyword.id, payload)
        except Exception as e:
            message = str(e) if isinstance(e, PersistenceError) else f"Error guardando artículo: {e}"
            logger.error("[Pipeline] %s: %s", site.nombre, message)
            await self._release(keyword)
            failure = PipelineResult(ok=False, title=draft.title, error=message, improved=improved)
            return failure, image, image_model

        result = PipelineResult(ok=True, article=article, title=article.titulo, improved=improved)
        return result, image, image_model

    # -----------------------------------------------------------------
    # Pasos best-effort: devuelven None en vez de propagar
    # -----------------------------------------------------------------

    async def _try_improve(
        self, site: SiteRow, draft: GeneratedDraft, options: ImprovementOptions
    ) -> Optional[GeneratedDraft]:
        if self.improver is None:
            return None
        try:
            return await self.improver.improve(draft, options)
        except ImprovementError as e:
            logger.warning("[Pipeline] %s: mejora descartada: %s", site.nombre, e)
        except Exception as e:
            logger.warning("[Pipeline] %s: mejora descartada (error inesperado): %s", site.nombre, e)
        return None

    async def _try_image(
        self, site: SiteRow, draft: GeneratedDraft, keyword: KeywordRow, model: str
    ) -> Optional[GeneratedImage]:
        if self.images is None:
            return None
        try:
            prompt = build_image_prompt(draft.title, keyword.keyword)
            return await self.images.generate(prompt, model, site.id)
        except Exception as e:
            logger.warning("[Pipeline] %s: imagen descartada: %s", site.nombre, e)
            return None

    async def _log_activity(self, site, keyword, article, options, image, image_model, improved):
        try:
            await self.store.log_activity(
                site.id,
                "article_generated",
                f"Artículo generado: {article.titulo}",
                {
                    "article_id": article.id,
                    "keyword": keyword.keyword,
                    "cluster": keyword.cluster,
                    "auto_published": options.auto_publish,
                    "improved": improved,
                    "image_generated": image is not None,
                    "image_model": image_model if image else None,
                },
            )
        except Exception as e:
            logger.warning("[Pipeline] %s: no se pudo registrar la actividad: %s", site.nombre, e)

    # -----------------------------------------------------------------

    async def _release(self, keyword: KeywordRow) -> None:
        try:
            await self.store.release_keyword(keyword.id)
        except Exception as e:
            logger.error("[Pipeline] No se pudo liberar la keyword #%d: %s", keyword.id, e)

    async def _unique_slug(self, site_id: int, slug: str) -> str:
        """Añade -2, -3, ... si el slug ya existe en el sitio."""
        base = slug or "articulo"
        candidate = base
        for n in range(2, MAX_SLUG_ATTEMPTS + 2):
            if not await self.store.slug_exists(site_id, candidate):
                return candidate
            candidate = f"{base}-{n}"
        raise PersistenceError(f"No hay slug libre para '{base}'")
