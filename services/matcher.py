"""
Tiered company name matching.

The enrichment workflow stores companies under whatever name it settled on,
which is often shorter or longer than what the user typed ("Acme" vs
"Acme Inc"). Tiers, first hit wins:

    1. EXACT                - stored name equals the query, ignoring case
    2. QUERY_CONTAINS_NAME  - a stored name appears inside the query
    3. NAME_CONTAINS_QUERY  - the query appears inside a stored name

Tier 2 has to scan every stored name; tiers 1 and 3 are pushed down to the
store. Within a tier the first record in store order wins.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from db import CompanyStore, Document
from models import MatchStrategy

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    document: Document
    stored_name: Optional[str]
    strategy: MatchStrategy


def _names_in_query(query: str, names: Iterable[str]):
    lowered = query.lower()
    for name in names:
        if name and name.strip() and name.lower() in lowered:
            yield name


def match_name(query: str, names: Iterable[str]) -> Optional[Tuple[str, MatchStrategy]]:
    """Apply the three tiers to an in-memory list of names."""
    names = [n for n in names if isinstance(n, str)]
    lowered = query.lower()

    for name in names:
        if name.lower() == lowered:
            return name, MatchStrategy.EXACT

    for name in _names_in_query(query, names):
        return name, MatchStrategy.QUERY_CONTAINS_NAME

    for name in names:
        if lowered in name.lower():
            return name, MatchStrategy.NAME_CONTAINS_QUERY

    return None


async def find_record(query: str, store: CompanyStore) -> Optional[MatchResult]:
    """Resolve a user-typed company name to a stored document, or None."""
    doc = await store.find_exact(query)
    if doc is not None:
        logger.debug("Matched %r exactly", query)
        return MatchResult(doc, doc.get("name"), MatchStrategy.EXACT)

    for name in _names_in_query(query, await store.list_names()):
        doc = await store.find_by_name(name)
        if doc is not None:
            logger.debug("Matched %r via stored name %r inside query", query, name)
            return MatchResult(doc, name, MatchStrategy.QUERY_CONTAINS_NAME)

    doc = await store.find_containing(query)
    if doc is not None:
        logger.debug("Matched %r as fragment of %r", query, doc.get("name"))
        return MatchResult(doc, doc.get("name"), MatchStrategy.NAME_CONTAINS_QUERY)

    return None
