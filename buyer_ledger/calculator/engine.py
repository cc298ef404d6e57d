# ==============================================================================
# buyer_ledger/calculator/engine.py
# ------------------------------------------------------------------------------
# Turns the rows of one imported sales sheet into one summary per buyer:
# total quintals, commission owed, last known place and payment date.
# The engine does no I/O and keeps no state between calls.
# ==============================================================================

import logging
import math
from collections import namedtuple
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, replace
from itertools import chain

import pandas as pd

from .cells import cell_text, coerce_date, normalize_counterparty, parse_number
from .headers import resolve_headers
from .schema import (AGENCY_COMMISSION_RATE, AGENCY_PRIMARY_TOKENS,
                     AGENCY_SUFFIX_TOKENS, PER_QUANTITY_COMMISSION)


class InvalidInputError(ValueError):
    """Raised when the engine is not given a sequence of row mappings."""


NormalizedRow = namedtuple(
    'NormalizedRow', ['buyer_name', 'quantity', 'amount', 'counterparty', 'place', 'date']
)


@dataclass(frozen=True)
class BuyerSummary:
    buyer: str
    place: str = ''
    total_quantity: float = 0.0
    commission: float = 0.0
    payment_date: str = None

    def to_dict(self):
        return asdict(self)


# --- Helper Functions ---

def _cell(row, header):
    if header is None:
        return ''
    return row.get(header, '')


def normalize_row(row, roles):
    """
    Reads the typed fields of one raw row using the resolved column roles.

    Never raises for bad cell values: numbers degrade to NaN and text/dates to ''.
    """
    date_header = roles.get('date')
    return NormalizedRow(
        buyer_name=cell_text(_cell(row, roles.get('buyer'))).strip(),
        quantity=parse_number(_cell(row, roles.get('quantity'))),
        amount=parse_number(_cell(row, roles.get('amount'))),
        counterparty=normalize_counterparty(_cell(row, roles.get('counterparty'))),
        place=cell_text(_cell(row, roles.get('place'))).strip(),
        date=coerce_date(_cell(row, date_header)) if date_header is not None else ''
    )


def is_agency_counterparty(counterparty):
    """True when the normalised counterparty name is the agency billed by amount."""
    return (any(token in counterparty for token in AGENCY_PRIMARY_TOKENS)
            and any(token in counterparty for token in AGENCY_SUFFIX_TOKENS))


def row_commission(row):
    """
    Commission contribution of a single normalised row.

    Agency rows pay AGENCY_COMMISSION_RATE of the amount, all other rows pay
    PER_QUANTITY_COMMISSION per quintal. A missing number contributes 0.
    """
    if is_agency_counterparty(row.counterparty):
        return 0.0 if math.isnan(row.amount) else row.amount * AGENCY_COMMISSION_RATE
    return 0.0 if math.isnan(row.quantity) else row.quantity * PER_QUANTITY_COMMISSION


def fold_row(summary, row):
    """Returns `summary` with one more row folded in."""
    quantity = 0.0 if math.isnan(row.quantity) else row.quantity
    return replace(
        summary,
        total_quantity=summary.total_quantity + quantity,
        commission=summary.commission + row_commission(row),
        place=row.place or summary.place,
        payment_date=row.date or summary.payment_date
    )


def aggregate(normalized_rows):
    """
    Folds normalised rows into a buyer -> BuyerSummary mapping, in input order.

    Rows without a buyer name are ignored. The mapping is local to this call.
    """
    summaries = {}
    for row in normalized_rows:
        if not row.buyer_name:
            continue
        current = summaries.get(row.buyer_name) or BuyerSummary(buyer=row.buyer_name)
        summaries[row.buyer_name] = fold_row(current, row)
    return summaries


def _iter_rows(rows):
    if isinstance(rows, pd.DataFrame):
        return iter(rows.to_dict(orient='records'))
    if rows is None or isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Iterable):
        raise InvalidInputError(f"Expected a sequence of rows, got {type(rows).__name__}.")
    return iter(rows)


def _checked(rows):
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidInputError(f"Row {index} is a {type(row).__name__}, not a mapping of header to value.")
        yield row


# --- Main Entry Point ---

def summarize_buyers(rows, roles=None):
    """
    Aggregates one batch of raw spreadsheet rows per buyer.

    Args:
        rows: Sequence of mappings (header -> cell value) or a pandas DataFrame.
            Every row is expected to carry the same headers as the first one.
        roles (dict): Optional pre-resolved role -> header mapping. Resolved
            from the first row's headers when omitted.

    Returns:
        dict: buyer name -> BuyerSummary, in the order buyers were first seen.

    Raises:
        InvalidInputError: if `rows` is not a sequence of mappings.
    """
    iterator = _checked(_iter_rows(rows))
    first = next(iterator, None)
    if first is None:
        logging.info("Empty batch, nothing to summarise.")
        return {}

    if roles is None:
        roles = resolve_headers(first.keys())
    logging.info(f"Summarising batch with column roles: {roles}")

    normalized = (normalize_row(row, roles) for row in chain([first], iterator))
    summaries = aggregate(normalized)

    logging.info(f"--- Summarisation complete. Generated summary for {len(summaries)} buyers. ---")
    return summaries


def emit_summaries(summaries):
    """Returns the summaries as plain dicts, in the same order."""
    return [summary.to_dict() for summary in summaries.values()]
