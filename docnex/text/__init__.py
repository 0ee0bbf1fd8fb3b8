"""Text helpers for imported content and model replies."""

from docnex.text.html import decode_html_entities
from docnex.text.json_extract import extract_json_array, extract_json_object
from docnex.text.keywords import extract_keywords


__all__ = [
    "decode_html_entities",
    "extract_json_array",
    "extract_json_object",
    "extract_keywords",
]
