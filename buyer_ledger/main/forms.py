# ==============================================================================
# buyer_ledger/main/forms.py
# ------------------------------------------------------------------------------
# Defines input forms using Flask-WTF for validating API payloads and uploads.
# The API is JSON-only, so CSRF protection is switched off per form instance.
# ==============================================================================

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import BooleanField, FloatField, SelectField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError
from werkzeug.datastructures import MultiDict

from buyer_ledger.calculator.cells import coerce_date

FALSE_VALUES = (False, 'false', 'False', '0', 'off', 'no', '')


def json_formdata(payload):
    """
    Wraps a JSON object as form data. None becomes '' and booleans become
    'true'/'false' so WTForms field coercion never sees non-string input.
    """
    def _as_form_value(value):
        if value is None:
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)
    return MultiDict({key: _as_form_value(value) for key, value in payload.items()})


def _validate_payment_date(form, field):
    if field.data and not coerce_date(field.data):
        raise ValidationError('Not a recognisable date.')


class PaymentForm(FlaskForm):
    """Manual payment fields a user edits for one buyer."""
    received_amount = FloatField('Received Amount', validators=[Optional(), NumberRange(min=0)])
    payment_mode = StringField('Chq/RTGS/Cash', validators=[Optional(), Length(max=64)])
    payment_date = StringField('Payment Date', validators=[Optional(), _validate_payment_date])


class BuyerRecordForm(PaymentForm):
    """One item of a bulk upsert."""
    buyer = StringField('Buyer Name', validators=[DataRequired(), Length(max=128)])
    place = StringField('Place', validators=[Optional(), Length(max=128)])
    total_quantity = FloatField('Total Qtls', validators=[Optional(), NumberRange(min=0)])
    commission = FloatField('Commission Amount', validators=[Optional(), NumberRange(min=0)])


class ImportForm(FlaskForm):
    """Spreadsheet upload."""
    file = FileField('Sales sheet', validators=[
        FileRequired(message='No file was selected.'),
        FileAllowed(['xlsx', 'xls'], message='Only .xlsx or .xls files are accepted.')
    ])
    mode = SelectField('Merge mode', choices=[('overwrite', 'Overwrite totals'), ('add', 'Add to totals')],
                       default='overwrite')
    replace = BooleanField('Clear existing buyers first', false_values=FALSE_VALUES)
