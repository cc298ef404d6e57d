# ==============================================================================
# buyer_ledger/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

import json
from datetime import datetime, timezone
from buyer_ledger import db


def _utcnow():
    return datetime.now(timezone.utc)


class Buyer(db.Model):
    """
    One row per buyer. Totals come from spreadsheet imports; the payment
    columns are maintained by hand through the API.
    """
    __tablename__ = 'buyer'
    id = db.Column(db.Integer, primary_key=True)
    buyer = db.Column(db.String(128), unique=True, index=True, nullable=False)
    place = db.Column(db.String(128), default='')
    total_quantity = db.Column(db.Float, default=0)
    commission = db.Column(db.Float, default=0)

    # Manual fields
    received_amount = db.Column(db.Float, nullable=True)
    payment_mode = db.Column(db.String(64), default='')
    payment_date = db.Column(db.String(10), default='')

    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f'<Buyer {self.id}: {self.buyer}>'

    def to_dict(self):
        return {
            'buyer': self.buyer,
            'place': self.place or '',
            'total_quantity': self.total_quantity or 0,
            'commission': self.commission or 0,
            'received_amount': self.received_amount,
            'payment_mode': self.payment_mode or '',
            'payment_date': self.payment_date or '',
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class ImportRun(db.Model):
    """
    Stores metadata for each imported spreadsheet.
    The resolved column roles are kept so a bad header mapping can be diagnosed later.
    """
    __tablename__ = 'import_run'
    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(128), nullable=False)
    upload_timestamp = db.Column(db.DateTime, index=True, default=_utcnow)
    mode = db.Column(db.String(16), nullable=False, default='overwrite')
    replaced = db.Column(db.Boolean, default=False)
    row_count = db.Column(db.Integer, default=0)
    buyer_count = db.Column(db.Integer, default=0)
    column_roles_json = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<ImportRun {self.id}: {self.filename}>'

    def get_column_roles(self):
        """Decodes the stored role -> header mapping."""
        if not self.column_roles_json:
            return {}
        return json.loads(self.column_roles_json)

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'upload_timestamp': self.upload_timestamp.isoformat() if self.upload_timestamp else None,
            'mode': self.mode,
            'replaced': bool(self.replaced),
            'row_count': self.row_count,
            'buyer_count': self.buyer_count,
            'column_roles': self.get_column_roles()
        }
