"""Argument checks and payload helpers shared by the mutation tools."""
from typing import Any, Dict, List, Sequence, Union

from reporting.metrics import MICROS_PER_UNIT

VALID_MATCH_TYPES = {'BROAD', 'PHRASE', 'EXACT'}

KeywordSpec = Union[str, Dict[str, Any]]


def require_numeric(value: Any, name: str) -> str:
    value = str(value or "").strip()
    if not value.isdigit():
        raise ValueError(f"{name} is required and must be numeric.")
    return value


def require_ids(values: Sequence[Any], name: str) -> List[str]:
    """Non-empty list of numeric IDs, in the order given, without duplicates."""
    if not values:
        raise ValueError(f"{name} must not be empty.")
    ids: List[str] = []
    for value in values:
        value = require_numeric(value, name)
        if value not in ids:
            ids.append(value)
    return ids


def to_micros(amount: float) -> int:
    return int(round(amount * MICROS_PER_UNIT))


def resource_name(response: Dict[str, Any]) -> str:
    """Resource name of the first result of a per-resource :mutate response."""
    return response.get('results', [{}])[0].get('resourceName', '')


def operation_resource_name(response: Dict[str, Any], index: int, result_key: str) -> str:
    """Resource name of one entry of a googleAds:mutate response."""
    responses = response.get('mutateOperationResponses', [])
    if index >= len(responses):
        return ''
    return responses[index].get(result_key, {}).get('resourceName', '')


def parse_keywords(keywords: Sequence[KeywordSpec]) -> List[Dict[str, Any]]:
    """Normalise keyword specs to {'text', 'match_type', 'cpc_bid'}.

    A plain string is a BROAD keyword; a dict needs 'text' and may carry
    'match_type' (default BROAD) and 'cpc_bid' in currency units.
    """
    if not keywords:
        raise ValueError("keywords list must not be empty.")

    parsed = []
    for kw in keywords:
        if isinstance(kw, str):
            kw = {'text': kw}
        text = str(kw.get('text') or "").strip()
        if not text:
            raise ValueError("Each keyword must have a non-empty 'text'.")
        match_type = str(kw.get('match_type') or 'BROAD').upper()
        if match_type not in VALID_MATCH_TYPES:
            raise ValueError(f"Invalid match_type '{match_type}'. Must be one of: BROAD, PHRASE, EXACT")
        cpc_bid = kw.get('cpc_bid')
        if cpc_bid is not None and cpc_bid <= 0:
            raise ValueError("cpc_bid must be positive.")
        parsed.append({'text': text, 'match_type': match_type, 'cpc_bid': cpc_bid})
    return parsed


def keyword_lines(keywords: Sequence[Dict[str, Any]]) -> List[str]:
    return [f'  • "{kw["text"]}" ({kw["match_type"]})' for kw in keywords]
