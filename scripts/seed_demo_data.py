"""
BlogFleet - Seed de datos de demo.
Crea tres sitios con su cadencia y un pool de keywords (propias y globales).

Ejecutar: python -m scripts.seed_demo_data
"""
import asyncio

from sqlalchemy import select

from core.store import SQLAlchemyStore
from models.base import init_db, async_session
from models.scheduler_config import SchedulerConfig
from models.keyword import Keyword
from models.site import Site

SITES = [
    {
        "nombre": "Huerto en Casa",
        "dominio": "huertoencasa.test",
        "keywords": ["huerto urbano en balcón", "calendario de siembra", "compost casero"],
        "cluster": "jardinería",
    },
    {
        "nombre": "Finanzas Claras",
        "dominio": "finanzasclaras.test",
        "keywords": ["fondo de emergencia", "interés compuesto", "presupuesto 50/30/20"],
        "cluster": "ahorro",
    },
    {
        "nombre": "Ruta Viajera",
        "dominio": "rutaviajera.test",
        "keywords": ["viajar barato por Europa", "mochila de mano", "seguro de viaje"],
        "cluster": "viajes",
    },
]

GLOBAL_KEYWORDS = ["errores comunes de principiante", "guía para empezar"]


async def seed():
    """Crea datos de demo."""
    await init_db()
    store = SQLAlchemyStore()

    async with async_session() as db:
        result = await db.execute(select(Site).where(Site.dominio == SITES[0]["dominio"]))
        if result.scalar_one_or_none():
            print("Datos de demo ya existen")
            return

        sites = [Site(nombre=s["nombre"], dominio=s["dominio"]) for s in SITES]
        db.add_all(sites)
        await db.commit()
        site_ids = [site.id for site in sites]

    await store.import_keywords(None, [{"keyword": kw} for kw in GLOBAL_KEYWORDS])

    for site_id, data in zip(site_ids, SITES):
        rows = [
            {"keyword": kw, "prioridad": len(data["keywords"]) - i, "cluster": data["cluster"]}
            for i, kw in enumerate(data["keywords"])
        ]
        result = await store.import_keywords(site_id, rows)
        print(f"{data['nombre']}: {result.imported} keywords importadas")

    async with async_session() as db:
        for site_id in site_ids:
            result = await db.execute(
                select(Keyword.id).where(
                    (Keyword.site_id == site_id) | (Keyword.site_id.is_(None))
                )
            )
            db.add(
                SchedulerConfig(
                    site_id=site_id,
                    enabled=True,
                    auto_publish=False,
                    max_por_dia=2,
                    max_por_semana=8,
                    dias_semana=[1, 2, 3, 4, 5],
                    horas_publicacion=[9, 13, 18],
                    keyword_ids=list(result.scalars().all()),
                )
            )
        await db.commit()

    print(f"Sitios creados: {len(site_ids)}")


if __name__ == "__main__":
    asyncio.run(seed())
