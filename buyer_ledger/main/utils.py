# ==============================================================================
# buyer_ledger/main/utils.py
# ------------------------------------------------------------------------------
# Store helpers: writing engine summaries and manual edits to the database,
# querying buyers, and building the Excel export.
# Functions here add to the session and leave committing to the caller.
# ==============================================================================

import logging
from io import BytesIO

import pandas as pd

from buyer_ledger import db
from buyer_ledger.calculator.schema import EXPORT_COLUMNS
from buyer_ledger.models import Buyer

MERGE_MODES = ('overwrite', 'add')
UPSERT_FIELDS = ('place', 'total_quantity', 'commission',
                 'received_amount', 'payment_mode', 'payment_date')


def filter_buyers(buyer=None, place=None):
    """Stored buyers ordered by name, optionally narrowed to one buyer and/or place."""
    query = Buyer.query
    if buyer:
        query = query.filter_by(buyer=buyer)
    if place:
        query = query.filter_by(place=place)
    return query.order_by(Buyer.buyer).all()


def distinct_places():
    rows = db.session.query(Buyer.place).filter(Buyer.place.isnot(None), Buyer.place != '') \
        .distinct().order_by(Buyer.place).all()
    return [place for (place,) in rows]


def save_summaries(summaries, mode='overwrite'):
    """
    Merges engine summaries into the buyer table.

    Args:
        summaries (dict): buyer name -> BuyerSummary, as returned by the engine.
        mode (str): 'overwrite' replaces stored totals, 'add' adds to them.

    Returns:
        int: Number of buyers created.

    Place and payment date are only replaced by non-empty values; the manual
    payment fields are never touched by an import.
    """
    if mode not in MERGE_MODES:
        raise ValueError(f"Unknown merge mode '{mode}'. Expected one of {MERGE_MODES}.")
    if not summaries:
        return 0

    existing = {b.buyer: b for b in Buyer.query.filter(Buyer.buyer.in_(list(summaries))).all()}
    created = 0
    for name, summary in summaries.items():
        record = existing.get(name)
        if record is None:
            record = Buyer(buyer=name, place='', total_quantity=0, commission=0)
            db.session.add(record)
            created += 1

        if mode == 'add':
            record.total_quantity = (record.total_quantity or 0) + summary.total_quantity
            record.commission = (record.commission or 0) + summary.commission
        else:
            record.total_quantity = summary.total_quantity
            record.commission = summary.commission

        if summary.place:
            record.place = summary.place
        if summary.payment_date:
            record.payment_date = summary.payment_date

    logging.info(f"Merged {len(summaries)} buyer summaries ({created} new) using mode '{mode}'.")
    return created


def upsert_buyer(values):
    """
    Creates or updates one buyer from a validated record. Only keys present in
    `values` are written.
    """
    name = values['buyer']
    record = Buyer.query.filter_by(buyer=name).first()
    if record is None:
        record = Buyer(buyer=name, place='', total_quantity=0, commission=0)
        db.session.add(record)
    apply_fields(record, values)
    return record


def apply_fields(record, values):
    for field in UPSERT_FIELDS:
        if field in values:
            setattr(record, field, values[field])
    return record


def clear_all_buyers():
    """Deletes every stored buyer and returns how many were removed."""
    deleted = Buyer.query.delete()
    logging.info(f"Deleted {deleted} buyer records.")
    return deleted


def build_export_frame(buyers):
    """
    Lays the buyers out as the exported sheet. Commission is rounded to two
    decimals here and nowhere else.
    """
    records = []
    for index, b in enumerate(buyers, start=1):
        records.append({
            'SL No': index,
            'Buyer Name': b.buyer,
            'Place': b.place or '',
            'Total Qtls': b.total_quantity or 0,
            'Commission Amount': f"{(b.commission or 0):.2f}",
            'Received Amount': '' if b.received_amount is None else b.received_amount,
            'Chq/RTGS/Cash': b.payment_mode or '',
            'Payment Date': b.payment_date or ''
        })
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


def export_workbook(buyers, sheet_name='Buyers'):
    """Writes the export frame to an in-memory .xlsx file."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        build_export_frame(buyers).to_excel(writer, sheet_name=sheet_name, index=False)
    output.seek(0)
    return output
