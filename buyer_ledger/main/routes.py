# ==============================================================================
# buyer_ledger/main/routes.py
# ------------------------------------------------------------------------------
# Defines the JSON API for the main application blueprint.
# This file acts as the controller between uploads, the engine and the store.
# ==============================================================================

import json
import os
import uuid
from datetime import datetime, timezone

from flask import current_app, jsonify, request, send_file
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import NotFound, RequestEntityTooLarge
from werkzeug.utils import secure_filename

from buyer_ledger import db
from buyer_ledger.calculator.cells import coerce_date
from buyer_ledger.calculator.engine import emit_summaries, summarize_buyers
from buyer_ledger.calculator.headers import resolve_headers
from buyer_ledger.calculator.validator import read_sales_rows, sheet_headers
from buyer_ledger.main import bp
from buyer_ledger.main.forms import BuyerRecordForm, ImportForm, PaymentForm, json_formdata
from buyer_ledger.main.utils import (apply_fields, clear_all_buyers,
                                     distinct_places, export_workbook, filter_buyers,
                                     save_summaries, upsert_buyer)
from buyer_ledger.models import Buyer, ImportRun

# --- Helper Functions ---

def error_response(code, message, status, details=None):
    body = {'error': code, 'message': message}
    if details:
        body['details'] = details
    return jsonify(body), status


def db_failure(action, exc):
    """Rolls back the session and reports a failed database operation."""
    db.session.rollback()
    current_app.logger.error(f"{request.method} {request.path} failed: {exc}", exc_info=True)
    return error_response('db_error', f'Failed to {action}', 500)


def form_values(form, payload):
    """Validated field values, restricted to the keys the client actually sent."""
    values = {}
    for field in form:
        name = field.name
        if name not in payload:
            continue
        data = field.data
        if name == 'payment_date':
            data = coerce_date(data) if data else ''
        elif name in ('place', 'payment_mode', 'buyer'):
            data = (data or '').strip()
        values[name] = data
    return values


# --- Error Handlers ---

@bp.app_errorhandler(NotFound)
def not_found(e):
    return error_response('not_found', e.description, 404)


@bp.app_errorhandler(RequestEntityTooLarge)
def too_large(e):
    return error_response('file_too_large', 'The uploaded file exceeds the size limit.', 413)


# --- Buyer Routes ---

@bp.route('/api/buyers', methods=['GET'])
def list_buyers():
    """Lists stored buyers, optionally filtered by exact buyer name and/or place."""
    try:
        buyers = filter_buyers(request.args.get('buyer'), request.args.get('place'))
    except SQLAlchemyError as e:
        return db_failure('fetch buyers', e)
    return jsonify([b.to_dict() for b in buyers])


@bp.route('/api/buyers', methods=['POST'])
def upsert_buyers():
    """Bulk upsert keyed by buyer name. Only the fields present in each item are set."""
    items = request.get_json(silent=True)
    if not isinstance(items, list):
        return error_response('invalid_body', 'Expected a JSON list of buyer records.', 400)

    validated = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return error_response('invalid_record', f'Item {index} is not an object.', 400)
        form = BuyerRecordForm(formdata=json_formdata(item), meta={'csrf': False})
        if not form.validate():
            return error_response('invalid_record', f'Item {index} is invalid.', 400, form.errors)
        validated.append(form_values(form, item))

    try:
        for values in validated:
            upsert_buyer(values)
        db.session.commit()
    except SQLAlchemyError as e:
        return db_failure('upsert buyers', e)

    current_app.logger.info(f"Upserted {len(validated)} buyer records.")
    return jsonify({'success': True, 'count': len(validated)})


@bp.route('/api/buyers/<path:buyer>', methods=['PATCH'])
def update_payment(buyer):
    """Updates the manual payment fields of one buyer."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return error_response('invalid_body', 'Expected a JSON object.', 400)

    form = PaymentForm(formdata=json_formdata(payload), meta={'csrf': False})
    if not form.validate():
        return error_response('invalid_body', 'Payment fields are invalid.', 400, form.errors)

    record = Buyer.query.filter_by(buyer=buyer).first()
    if record is None:
        return error_response('not_found', f"Buyer '{buyer}' does not exist.", 404)

    try:
        apply_fields(record, form_values(form, payload))
        db.session.commit()
    except SQLAlchemyError as e:
        return db_failure('update buyer', e)

    return jsonify({'success': True, 'buyer': record.to_dict()})


@bp.route('/api/buyers', methods=['DELETE'])
def delete_all_buyers():
    """Permanently deletes every buyer record."""
    try:
        deleted = clear_all_buyers()
        db.session.commit()
    except SQLAlchemyError as e:
        return db_failure('clear buyers', e)
    current_app.logger.warning(f"All buyer data deleted ({deleted} records).")
    return jsonify({'success': True, 'deleted': deleted})


@bp.route('/api/places', methods=['GET'])
def list_places():
    try:
        return jsonify(distinct_places())
    except SQLAlchemyError as e:
        return db_failure('fetch places', e)


@bp.route('/api/buyers/export', methods=['GET'])
def export_buyers():
    """Downloads the (optionally filtered) buyer table as an Excel workbook."""
    try:
        buyers = filter_buyers(request.args.get('buyer'), request.args.get('place'))
    except SQLAlchemyError as e:
        return db_failure('fetch buyers', e)

    output = export_workbook(buyers, sheet_name=current_app.config.get('EXPORT_SHEET_NAME', 'Buyers'))
    return send_file(
        output,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=current_app.config.get('EXPORT_FILENAME', 'buyers_summary.xlsx')
    )


# --- Import Routes ---

@bp.route('/api/import', methods=['POST'])
def import_sheet():
    """
    Imports a sales workbook: decodes the first sheet, summarises it per buyer
    and merges the result into the store.
    """
    form = ImportForm(meta={'csrf': False})
    if not form.validate_on_submit():
        return error_response('invalid_upload', 'The upload is invalid.', 400, form.errors)

    upload = form.file.data
    filename = secure_filename(upload.filename) or 'upload.xlsx'
    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    # Unique name per upload; the file is only needed until it has been decoded
    filepath = os.path.join(upload_folder, f"{uuid.uuid4().hex}_{filename}")
    upload.save(filepath)
    try:
        rows, errors = read_sales_rows(filepath)
    finally:
        os.remove(filepath)
    if errors:
        current_app.logger.warning(f"Rejected upload '{filename}': {errors}")
        return error_response('invalid_file', 'Invalid Excel file or format.', 400, errors)

    roles = resolve_headers(sheet_headers(rows))
    summaries = summarize_buyers(rows, roles=roles)
    column_roles = {role: (None if header is None else str(header)) for role, header in roles.items()}

    try:
        if form.replace.data:
            clear_all_buyers()
        created = save_summaries(summaries, mode=form.mode.data)
        run = ImportRun(
            filename=filename,
            upload_timestamp=datetime.now(timezone.utc),
            mode=form.mode.data,
            replaced=bool(form.replace.data),
            row_count=len(rows),
            buyer_count=len(summaries),
            column_roles_json=json.dumps(column_roles, ensure_ascii=False)
        )
        db.session.add(run)
        db.session.commit()
    except SQLAlchemyError as e:
        return db_failure('store imported buyers', e)

    current_app.logger.info(f"Imported '{filename}': {len(rows)} rows, {len(summaries)} buyers ({created} new).")
    return jsonify({
        'success': True,
        'import_id': run.id,
        'headers': [str(h) for h in sheet_headers(rows)],
        'column_roles': column_roles,
        'row_count': len(rows),
        'buyer_count': len(summaries),
        'created': created,
        'buyers': emit_summaries(summaries)
    })


@bp.route('/api/imports', methods=['GET'])
def import_history():
    """Lists past imports, newest first."""
    runs = ImportRun.query.order_by(ImportRun.upload_timestamp.desc(), ImportRun.id.desc()).all()
    return jsonify([run.to_dict() for run in runs])
