"""HTTP routes for the item inventory."""

import csv
import io
import zipfile

from flask import abort, jsonify, request, send_file
from flask_login import login_required
from openpyxl import Workbook, load_workbook
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import ROLE_ADMIN
from modules.items.models import DEFAULT_UNIT, ITEM_FIELDS, Item, normalize_sku
from modules.transactions.models import Transaction
from permissions import require_role
from utils import allowed_file, clean_str, get_payload, parse_int

from . import bp

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEXT_FIELDS = ("description", "category", "location")


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description=message)


def _sku_taken(sku: str, exclude_id: int | None = None) -> bool:
    query = Item.query.filter_by(sku=sku)
    if exclude_id is not None:
        query = query.filter(Item.id != exclude_id)
    return query.first() is not None


@bp.route('', methods=['GET'])
@login_required
def list_items():
    query = Item.query
    keyword = request.args.get('q', '').strip()
    if keyword:
        query = query.filter(or_(
            Item.sku.ilike(f"%{keyword}%"),
            Item.name.ilike(f"%{keyword}%"),
            Item.description.ilike(f"%{keyword}%"),
            Item.category.ilike(f"%{keyword}%"),
            Item.location.ilike(f"%{keyword}%"),
        ))
    category = request.args.get('category', '').strip()
    if category:
        query = query.filter(Item.category == category)

    items = query.order_by(Item.name, Item.id).all()
    return jsonify(items=[i.to_dict() for i in items], count=len(items))


@bp.route('/<int:item_id>', methods=['GET'])
@login_required
def get_item(item_id):
    item = db.get_or_404(Item, item_id, description="Item not found.")
    return jsonify(item=item.to_dict())


@bp.route('', methods=['POST'])
@require_role(ROLE_ADMIN)
def create_item():
    data = get_payload()
    sku = clean_str(data.get('sku'))
    name = clean_str(data.get('name'))
    if not sku or not name:
        abort(400, description="SKU and name are required.")

    quantity = 0
    if data.get('quantity') not in (None, ''):
        quantity = parse_int(data.get('quantity'), minimum=0)
        if quantity is None:
            abort(400, description="Quantity must be a non-negative integer.")

    sku = normalize_sku(sku)
    if _sku_taken(sku):
        abort(409, description=f"SKU {sku} already exists.")

    item = Item(
        sku=sku,
        name=name,
        unit=clean_str(data.get('unit')) or DEFAULT_UNIT,
        quantity=quantity,
        **{field: clean_str(data.get(field)) for field in TEXT_FIELDS},
    )
    db.session.add(item)
    _commit_or_conflict(f"SKU {sku} already exists.")
    return jsonify(message="Item created.", item=item.to_dict()), 201


@bp.route('/<int:item_id>', methods=['PUT', 'PATCH'])
@require_role(ROLE_ADMIN)
def update_item(item_id):
    item = db.get_or_404(Item, item_id, description="Item not found.")
    data = get_payload()

    if 'quantity' in data:
        abort(400, description="Stock levels change only through transactions.")

    if 'sku' in data:
        sku = clean_str(data.get('sku'))
        if not sku:
            abort(400, description="SKU must not be empty.")
        sku = normalize_sku(sku)
        if _sku_taken(sku, exclude_id=item.id):
            abort(409, description=f"SKU {sku} already exists.")
        item.sku = sku
    if 'name' in data:
        name = clean_str(data.get('name'))
        if not name:
            abort(400, description="Name must not be empty.")
        item.name = name
    if 'unit' in data:
        item.unit = clean_str(data.get('unit')) or DEFAULT_UNIT
    for field in TEXT_FIELDS:
        if field in data:
            setattr(item, field, clean_str(data.get(field)))

    _commit_or_conflict("SKU already exists.")
    return jsonify(message="Item updated.", item=item.to_dict())


@bp.route('/<int:item_id>', methods=['DELETE'])
@require_role(ROLE_ADMIN)
def delete_item(item_id):
    item = db.get_or_404(Item, item_id, description="Item not found.")
    if Transaction.query.filter_by(item_id=item.id).first() is not None:
        abort(409, description="Item has ledger entries and cannot be deleted.")

    db.session.delete(item)
    db.session.commit()
    return jsonify(message="Item deleted.")


@bp.route('/export', methods=['GET'])
@login_required
def export_items():
    wb = Workbook()
    ws = wb.active
    ws.title = "Items"
    ws.append(list(ITEM_FIELDS))
    for item in Item.query.order_by(Item.sku).all():
        ws.append([getattr(item, field) for field in ITEM_FIELDS])

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return send_file(buf, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name="items.xlsx")


def _read_rows(file):
    """Yield (row_number, dict) from an uploaded .xlsx or .csv file.

    Header names are matched case-insensitively.
    """
    filename = file.filename.lower()
    if filename.endswith('.xlsx'):
        wb = load_workbook(io.BytesIO(file.read()), read_only=True)
        ws = wb.active
        rows = ws.iter_rows(values_only=True)
        header = [str(h).strip().lower() if h is not None else '' for h in next(rows, ())]
        for number, row in enumerate(rows, start=2):
            yield number, dict(zip(header, row))
        wb.close()
    else:
        stream = io.StringIO(file.read().decode("utf-8-sig"), newline=None)
        reader = csv.DictReader(stream)
        for number, row in enumerate(reader, start=2):
            yield number, {(k or '').strip().lower(): v for k, v in row.items()}


@bp.route('/import', methods=['POST'])
@require_role(ROLE_ADMIN)
def import_items():
    file = request.files.get('file')
    if not file or not file.filename:
        abort(400, description="No file uploaded.")
    if not allowed_file(file.filename):
        abort(400, description="Unsupported file type. Please upload .xlsx or .csv.")

    added = 0
    skipped = []
    invalid = []
    seen = set()
    try:
        for number, row in _read_rows(file):
            sku = clean_str(row.get('sku'))
            if not sku:
                continue
            sku = normalize_sku(sku)
            if sku in seen or _sku_taken(sku):
                skipped.append(sku)
                continue

            name = clean_str(row.get('name'))
            raw_qty = row.get('quantity')
            quantity = 0 if raw_qty in (None, '') else parse_int(raw_qty, minimum=0)
            if not name or quantity is None:
                invalid.append(number)
                continue

            db.session.add(Item(
                sku=sku,
                name=name,
                unit=clean_str(row.get('unit')) or DEFAULT_UNIT,
                quantity=quantity,
                **{field: clean_str(row.get(field)) for field in TEXT_FIELDS},
            ))
            seen.add(sku)
            added += 1
    except (ValueError, KeyError, UnicodeDecodeError, zipfile.BadZipFile) as exc:
        db.session.rollback()
        abort(400, description=f"Could not read import file: {exc}")

    _commit_or_conflict("Import conflicts with existing SKUs.")
    return jsonify(added=added, skipped=skipped, invalid=invalid)
