"""
BlogFleet - Autenticación de los endpoints operativos.
Todas las rutas /api/* exigen el header X-Admin-Key.
"""
import hmac
import logging
from fastapi import Header, HTTPException, Request

from config import get_settings

logger = logging.getLogger(__name__)


def verify_key(candidate: str | None) -> bool:
    """Compara la clave recibida con la configurada (tiempo constante)."""
    expected = get_settings().admin_key
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate, expected)


async def verify_admin_key(request: Request, x_admin_key: str | None = Header(default=None)):
    """Dependency que protege las rutas de la API."""
    if not verify_key(x_admin_key):
        logger.warning("[Auth] Acceso denegado a %s", request.url.path)
        raise HTTPException(status_code=403, detail="Admin key inválida")
    return True
