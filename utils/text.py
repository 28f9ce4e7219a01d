"""
BlogFleet - Utilidades de texto.
Slugs, etiquetas truncadas para la UI y parseo tolerante de JSON devuelto por la IA.
"""
import json
import re
from typing import Optional


def slugify(texto: str) -> str:
    """Convierte un texto a slug URL-friendly."""
    slug = texto.lower().strip()
    slug = re.sub(r'[áàäâ]', 'a', slug)
    slug = re.sub(r'[éèëê]', 'e', slug)
    slug = re.sub(r'[íìïî]', 'i', slug)
    slug = re.sub(r'[óòöô]', 'o', slug)
    slug = re.sub(r'[úùüû]', 'u', slug)
    slug = re.sub(r'[ñ]', 'n', slug)
    slug = re.sub(r'[ç]', 'c', slug)
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s]+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def truncate_label(texto: str, max_length: int = 30) -> str:
    """Trunca una etiqueta para mostrarla en la barra de progreso."""
    if len(texto) <= max_length:
        return texto
    return texto[:max_length] + "…"


def parse_json_response(text: str) -> Optional[dict]:
    """Parsea respuesta JSON de la IA (con tolerancia a formato)."""
    # Limpiar backticks
    text = re.sub(r'```json\s*', '', text)
    text = re.sub(r'```\s*', '', text)
    text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Intentar encontrar JSON dentro del texto
        match = re.search(r'\{[\s\S]*\}', text)
        if not match:
            return None
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None
