"""
Récupération d'une valeur JSON à partir d'une réponse LLM peu fiable.

Gemini renvoie souvent du "presque JSON" : bloc ```json entouré de texte,
clés non quotées, apostrophes, virgules en trop... On essaie plusieurs
stratégies, de la plus exacte à la plus spéculative, et on garde la première
qui donne un objet ou un tableau.
"""
import json
import logging
import re
from typing import Any, Callable, List, Tuple, Union

from app.services.ai_engine.errors import ParseFailure

logger = logging.getLogger(__name__)

JsonValue = Union[dict, list]

EXCERPT_LENGTH = 500

_FENCE_BLOCK = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)
_FENCE_MARK = re.compile(r"```[\w-]*")
# Chaînes "..." gardées telles quelles, chaînes '...' à convertir
_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"|(?<!\w)\'(?:[^\'\\\n]|\\.)*\'', re.DOTALL)
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][\w-]*)\s*:")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_SCHEDULE_KEY = re.compile(r"[\"']?schedule[\"']?\s*:\s*\[", re.IGNORECASE)


def _excerpt(text: str) -> str:
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[:EXCERPT_LENGTH] + "..."


def _loads_structured(text: str) -> JsonValue:
    value = json.loads(text)
    if not isinstance(value, (dict, list)):
        raise ValueError(f"valeur JSON de type {type(value).__name__}, objet ou tableau attendu")
    return value


def _repair_literal(literal: str) -> str:
    if literal.startswith("'"):
        # 'l\'heure "x"' -> "l'heure \"x\""
        inner = literal[1:-1].replace("\\'", "'")
        literal = '"' + re.sub(r'(?<!\\)"', r'\\"', inner) + '"'
    # Retours à la ligne bruts interdits dans une chaîne JSON
    return re.sub(r"[\r\n\t]+", " ", literal)


def _repair_structure(segment: str) -> str:
    segment = _UNQUOTED_KEY.sub(r'\1"\2":', segment)
    segment = _TRAILING_COMMA.sub(r"\1", segment)
    return re.sub(r"\s+", " ", segment)


def clean_json_text(text: str) -> str:
    """
    Réparations heuristiques des erreurs de formatage les plus courantes.
    Le contenu des chaînes n'est jamais réécrit : seules les portions entre
    deux littéraux passent par les réparations de structure.
    """
    cleaned = _FENCE_MARK.sub("", text).strip()
    parts = []
    position = 0
    for match in _LITERAL.finditer(cleaned):
        parts.append(_repair_structure(cleaned[position:match.start()]))
        parts.append(_repair_literal(match.group(0)))
        position = match.end()
    parts.append(_repair_structure(cleaned[position:]))
    return "".join(parts)


# --- Stratégies (chacune lève une exception si elle échoue) ---

def _direct(text: str) -> JsonValue:
    return _loads_structured(text)


def _code_fence(text: str) -> JsonValue:
    match = _FENCE_BLOCK.search(text)
    if not match:
        raise ValueError("aucun bloc ``` trouvé")
    return _loads_structured(match.group(1).strip())


def _brace_span(text: str) -> JsonValue:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("aucune paire d'accolades")
    return _loads_structured(text[start:end + 1])


def _cleaned(text: str) -> JsonValue:
    cleaned = clean_json_text(text)
    try:
        return _loads_structured(cleaned)
    except ValueError:
        # Le nettoyage ne retire pas la prose autour de l'objet
        return _brace_span(cleaned)


def _schedule_array(text: str) -> JsonValue:
    match = _SCHEDULE_KEY.search(text)
    if not match:
        raise ValueError("aucune clé 'schedule' suivie d'un tableau")
    fragment = text[match.end() - 1:]
    decoder = json.JSONDecoder()
    try:
        value, _ = decoder.raw_decode(fragment)
    except json.JSONDecodeError:
        value, _ = decoder.raw_decode(clean_json_text(fragment))
    if not isinstance(value, list):
        raise ValueError("la valeur de 'schedule' n'est pas un tableau")
    return {"schedule": value}


# L'ordre compte : les stratégies suivantes sont plus spéculatives
STRATEGIES: List[Tuple[str, Callable[[str], JsonValue]]] = [
    ("direct", _direct),
    ("code_fence", _code_fence),
    ("brace_span", _brace_span),
    ("cleaned", _cleaned),
    ("schedule_array", _schedule_array),
]


def parse_ai_response(text: Any) -> JsonValue:
    """
    Renvoie le premier objet/tableau JSON récupérable dans `text`.
    Lève ParseFailure quand toutes les stratégies ont échoué.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseFailure("réponse vide", excerpt="" if text is None else _excerpt(str(text)))

    attempts = []
    for name, strategy in STRATEGIES:
        try:
            value = strategy(text)
        except ValueError as e:  # json.JSONDecodeError hérite de ValueError
            logger.debug("Stratégie de parsing '%s' en échec : %s", name, e)
            attempts.append(name)
            continue
        if attempts:
            logger.info("Réponse IA récupérée par la stratégie '%s' (échecs : %s)", name, ", ".join(attempts))
        return value

    excerpt = _excerpt(text)
    logger.warning("Aucune stratégie n'a pu parser la réponse IA. Contenu brut : %s", excerpt)
    raise ParseFailure("réponse IA impossible à parser", attempts=attempts, excerpt=excerpt)
