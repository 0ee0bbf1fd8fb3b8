"""Heuristic keyword extraction for block auto-tagging.

Works only on the string it is given: proper nouns that do not open a
sentence, short quoted phrases and a fixed list of technical terms.
"""

import re


SPANISH_STOP_WORDS = frozenset({
    "el", "la", "los", "las", "un", "una", "unos", "unas", "y", "e", "o", "u",
    "a", "ante", "bajo", "cabe", "con", "contra", "de", "desde", "durante", "en",
    "entre", "hacia", "hasta", "mediante", "para", "por", "según", "sin", "so",
    "sobre", "tras", "versus", "vía",
    "que", "quien", "donde", "como", "cuando", "cual", "cuyo",
    "este", "esta", "estos", "estas", "ese", "esa", "esos", "esas", "aquel",
    "aquella", "aquellos", "aquellas", "esto", "eso", "aquello",
    "mi", "tu", "su", "mis", "tus", "sus", "nuestro", "nuestra",
    "me", "te", "se", "nos", "os", "le", "les", "lo",
    "ser", "es", "soy", "eres", "somos", "son", "fue", "fueron", "era", "eramos",
    "estar", "estoy", "estamos", "estan",
    "haber", "he", "has", "ha", "hemos", "han", "hay",
    "tener", "tengo", "tienes", "tiene", "tenemos", "tienen",
    "hacer", "hago", "haces", "hace", "hacemos", "hacen",
    "ir", "voy", "vas", "va", "vamos", "van",
    "pero", "mas", "sino", "aunque", "porque", "pues",
    "si", "no", "tambien", "tampoco", "muy", "menos",
    "todo", "nada", "algo", "algun", "alguno", "alguna", "ningun", "ninguno", "ninguna",
    "otro", "otra", "otros", "otras",
})

TECHNICAL_TERMS = (
    "React", "Next.js", "Supabase", "SQL", "Database", "Component", "API", "Frontend", "Backend",
    "Typescript", "Javascript", "Node.js", "HTML", "CSS", "Tailwind", "PostgreSQL",
    "Auth", "Storage", "Realtime", "Vector", "Embedding", "Semantic", "AI", "LLM",
)

_PROPER_NOUN = re.compile(r"\b[A-ZÁÉÍÓÚÑ][a-záéíóúñ]+\b")
_QUOTED = re.compile(r'"([^"]+)"')
_PUNCTUATION = re.compile(r"[.,;:()]")


def _opens_sentence(content: str, start: int) -> bool:
    if start == 0:
        return True
    if content[start - 1] in "?!":
        return True
    return content[max(0, start - 2):start] == ". "


def extract_keywords(content: str) -> list[str]:
    """Return candidate tags for ``content`` in discovery order."""
    if not content:
        return []

    keywords: dict[str, None] = {}
    seen_lower: set[str] = set()

    for match in _PROPER_NOUN.finditer(content):
        if _opens_sentence(content, match.start()):
            continue
        word = match.group(0)
        clean = _PUNCTUATION.sub("", word.lower())
        if clean in SPANISH_STOP_WORDS or len(clean) <= 2 or clean in seen_lower:
            continue
        seen_lower.add(clean)
        keywords[word] = None

    for match in _QUOTED.finditer(content):
        phrase = match.group(1)
        if 2 < len(phrase) < 30 and _PUNCTUATION.sub("", phrase).lower() not in SPANISH_STOP_WORDS:
            keywords[phrase] = None

    lowered = content.lower()
    for term in TECHNICAL_TERMS:
        if term.lower() in lowered:
            keywords[term] = None

    return list(keywords)
