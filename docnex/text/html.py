"""HTML entity decoding for imported legal text."""

import re


_ENTITY = re.compile(r"&([a-z0-9]+|#[0-9]+|#x[a-f0-9]+);", re.IGNORECASE)

_ENTITIES: dict[str, str] = {
    "&aacute;": "á", "&eacute;": "é", "&iacute;": "í", "&oacute;": "ó", "&uacute;": "ú",
    "&Aacute;": "Á", "&Eacute;": "É", "&Iacute;": "Í", "&Oacute;": "Ó", "&Uacute;": "Ú",
    "&ntilde;": "ñ", "&Ntilde;": "Ñ", "&quot;": '"', "&amp;": "&", "&lt;": "<", "&gt;": ">",
    "&apos;": "'", "&deg;": "°", "&bull;": "•", "&iquest;": "¿", "&iexcl;": "¡",
}


def _replace(match: re.Match[str]) -> str:
    entity = match.group(0)
    return _ENTITIES.get(entity) or _ENTITIES.get(entity.lower(), entity)


def decode_html_entities(text: str) -> str:
    """Decode the named entities common in Spanish legal documents.

    Unknown entities, including numeric ones, are left untouched.
    """
    if not text:
        return ""
    return _ENTITY.sub(_replace, text)
