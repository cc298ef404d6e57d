# ==============================================================================
# buyer_ledger/calculator/headers.py
# ------------------------------------------------------------------------------
# Works out which spreadsheet column plays which role (buyer, quantity, ...).
# Sheets come from different people, so headers vary in case, spacing and
# spelling; the rules in schema.HEADER_RULES absorb those differences.
# ==============================================================================

import logging
from .schema import HEADER_RULES


def _clean(header):
    return str(header).strip().lower()


def _first_match(headers, candidates, predicate):
    # Candidate priority first, then column order
    for candidate in candidates:
        for header in headers:
            if predicate(_clean(header), candidate):
                return header
    return None


def resolve_role(headers, candidates, exact=False):
    """
    Finds the header for one role.

    Args:
        headers (list): Headers in column order, exactly as they appear in the sheet.
        candidates (list): Lower-case synonyms in priority order.
        exact (bool): Prefer a header equal to a candidate over one that merely contains it.

    Returns:
        The matching header (unchanged) or None.
    """
    if exact:
        found = _first_match(headers, candidates, lambda header, candidate: header == candidate)
        if found is not None:
            return found
    return _first_match(headers, candidates, lambda header, candidate: candidate in header)


def resolve_headers(headers, rules=HEADER_RULES):
    """
    Resolves every role in `rules` against the headers of a batch.

    Roles without a match map to None; that is not an error.
    """
    headers = list(headers)
    roles = {
        role: resolve_role(headers, rule['candidates'], rule.get('exact', False))
        for role, rule in rules.items()
    }
    missing = [role for role, header in roles.items() if header is None]
    if missing:
        logging.warning(f"No column found for role(s) {missing}. Available columns are: {headers}")
    logging.debug(f"Resolved column roles: {roles}")
    return roles
