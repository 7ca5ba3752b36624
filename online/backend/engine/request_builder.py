import re
from loguru import logger

from online.backend.core.errors import ValidationError
from online.backend.engine.models import Intent, ProviderRequest

"""
Engine - Request Builder.

This module turns a user intent and its raw text input into the exact
BlueCitrus endpoint and JSON payload. All input cleaning and count limits
live here, so every validation failure is raised before a network call.
"""

ENDPOINTS = {
    Intent.PHRASE_MATCH: "/like-terms",
    Intent.EXACT_MATCH: "/keyword-fuzzy-landscape",
    Intent.ASIN_LOOKUP: "/asin-vector-terms",
    Intent.UNIVERSE_EXPAND: "/keyword-flat-landscape",
    Intent.HISTORY: "/keyword-volume-history",
}

DOMAIN = "US"

PHRASE_NUM_RESULTS = 100
EXACT_ROW_LIMIT = 1000
ASIN_NUM_TERMS = 100
MAX_LOOKUP_ASINS = 5

MAX_UNIVERSE_KEYWORDS = 100
MAX_UNIVERSE_ASINS = 10
DEFAULT_LEVELS = 2
MIN_LEVELS = 1
MAX_LEVELS = 4
MIN_KEYWORD_LENGTH = 5
SEARCH_VOLUME_PARAMS = {"A": 15000000, "X": -0.5818, "Y": -0.0205}

MAX_HISTORY_KEYWORDS = 10

# Fallback seed lookups for an empty universe expansion
SEED_LOOKUP_SIZE = 10

_PHRASE_DISALLOWED = re.compile(r"[^a-zA-Z0-9,.\s-]")
_LIST_SEPARATORS = re.compile(r"[\n,]")


def split_list(text: str | None, separators: re.Pattern = _LIST_SEPARATORS, case: str | None = None, limit: int | None = None) -> list[str]:
    """
    Splits free text into a cleaned list.

    Pieces are trimmed, optionally lower/upper-cased, empties dropped and the
    result truncated to `limit` entries.
    """
    if not text:
        return []
    items = []
    for piece in separators.split(text):
        piece = piece.strip()
        if case == "lower":
            piece = piece.lower()
        elif case == "upper":
            piece = piece.upper()
        if piece:
            items.append(piece)
    return items[:limit] if limit is not None else items


def clean_phrase(phrase: str) -> str:
    """Strips disallowed symbols, splits on commas and rejoins the trimmed pieces without a separator."""
    stripped = _PHRASE_DISALLOWED.sub("", phrase)
    return "".join(split_list(stripped, separators=re.compile(",")))


class RequestBuilder:
    """
    Builds provider requests for each intent.

    Usage:
        builder = RequestBuilder()
        request = builder.build(Intent.ASIN_LOOKUP, "B0A, B0B")
        request = builder.build(Intent.UNIVERSE_EXPAND, "usb cable", asins="", levels=3)
    """

    def build(self, intent: Intent, raw_input: str | None = "", *, asins: str | None = "", levels: int = DEFAULT_LEVELS) -> ProviderRequest:
        try:
            intent = Intent(intent)
        except ValueError:
            raise ValidationError("invalid-search-type", f"Unknown search type: {intent}")

        if intent == Intent.UNIVERSE_EXPAND:
            request = self._universe_expand(raw_input, asins, levels)
        elif intent == Intent.HISTORY:
            request = self._history(raw_input)
        else:
            if not raw_input or not raw_input.strip():
                raise ValidationError("missing-input", "Input is required")
            builders = {
                Intent.PHRASE_MATCH: self._phrase_match,
                Intent.EXACT_MATCH: self._exact_match,
                Intent.ASIN_LOOKUP: self._asin_lookup,
            }
            request = builders[intent](raw_input)

        logger.debug(f"Built {intent.value} request for {request.endpoint}: {request.payload}")
        return request

    def _phrase_match(self, raw_input: str) -> ProviderRequest:
        phrase = clean_phrase(raw_input)
        if not phrase:
            raise ValidationError("missing-input", "Input contains no searchable characters")
        logger.info(f"AI phrase match for: '{phrase}'")
        return ProviderRequest(
            endpoint=ENDPOINTS[Intent.PHRASE_MATCH],
            payload={"input_text": phrase, "num_results": PHRASE_NUM_RESULTS},
        )

    def _exact_match(self, raw_input: str) -> ProviderRequest:
        logger.info(f"Exact match for: '{raw_input}'")
        return ProviderRequest(
            endpoint=ENDPOINTS[Intent.EXACT_MATCH],
            payload={"keyword_match": raw_input, "row_limit": EXACT_ROW_LIMIT, "domain": DOMAIN},
        )

    def _asin_lookup(self, raw_input: str) -> ProviderRequest:
        asins = split_list(raw_input, separators=re.compile(","), limit=MAX_LOOKUP_ASINS)
        if not asins:
            raise ValidationError("missing-input", "At least one ASIN is required")
        logger.info(f"ASIN lookup for: {', '.join(asins)}")
        return ProviderRequest(
            endpoint=ENDPOINTS[Intent.ASIN_LOOKUP],
            payload={"asins": asins, "num_terms": ASIN_NUM_TERMS, "view": "summary"},
        )

    def _universe_expand(self, keywords: str | None, asins: str | None, levels: int) -> ProviderRequest:
        keyword_list = split_list(keywords, case="lower", limit=MAX_UNIVERSE_KEYWORDS)
        asin_list = split_list(asins, case="upper", limit=MAX_UNIVERSE_ASINS)

        if not keyword_list and not asin_list:
            raise ValidationError("missing-input", "Either keywords or ASINs are required")

        if isinstance(levels, bool) or not isinstance(levels, int) or not MIN_LEVELS <= levels <= MAX_LEVELS:
            raise ValidationError("invalid-levels", f"levels must be an integer between {MIN_LEVELS} and {MAX_LEVELS}")

        payload = {
            "levels": levels,
            "min_keyword_length": MIN_KEYWORD_LENGTH,
            "return_keepa_data": False,
            "search_volume_params": dict(SEARCH_VOLUME_PARAMS),
            "domain": DOMAIN,
        }
        if keyword_list:
            payload["keywords"] = keyword_list
        if asin_list:
            payload["asins"] = asin_list

        logger.info(f"Universe expansion: {len(keyword_list)} keywords, {len(asin_list)} ASINs, levels={levels}")
        return ProviderRequest(endpoint=ENDPOINTS[Intent.UNIVERSE_EXPAND], payload=payload)

    def _history(self, keywords: str | None) -> ProviderRequest:
        keyword_list = split_list(keywords, case="lower", limit=MAX_HISTORY_KEYWORDS)
        if not keyword_list:
            raise ValidationError("missing-input", "Keywords are required")
        logger.info(f"Volume history for: {', '.join(keyword_list)}")
        return ProviderRequest(endpoint=ENDPOINTS[Intent.HISTORY], payload={"keywords": keyword_list})

    def build_seed_lookup(self, keywords: list[str], asins: list[str]) -> ProviderRequest | None:
        """
        Builds the lookup used to reseed an empty universe expansion.

        Keywords take priority: the whole list joined by spaces goes to the
        phrase endpoint. Otherwise only the first ASIN is sent to the ASIN
        endpoint. Returns None when there is nothing to look up.
        """
        if keywords:
            return ProviderRequest(
                endpoint=ENDPOINTS[Intent.PHRASE_MATCH],
                payload={"input_text": " ".join(keywords), "num_results": SEED_LOOKUP_SIZE},
            )
        if asins:
            return ProviderRequest(
                endpoint=ENDPOINTS[Intent.ASIN_LOOKUP],
                payload={"asins": [asins[0]], "num_terms": SEED_LOOKUP_SIZE, "view": "summary"},
            )
        return None
