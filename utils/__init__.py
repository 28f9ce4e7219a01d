"""BlogFleet - Utilidades compartidas."""
from utils.logger import setup_logging
from utils.text import slugify, truncate_label, parse_json_response

__all__ = ["setup_logging", "slugify", "truncate_label", "parse_json_response"]
