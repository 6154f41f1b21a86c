"""HTTP routes for the transaction ledger."""

from flask import abort, jsonify, request
from flask_login import current_user, login_required

from extensions import db
from modules.items.models import Item
from modules.transactions.models import TRANSACTION_TYPES, TYPE_IN, Transaction
from utils import clean_str, get_payload, parse_int

from . import bp


@bp.route('', methods=['GET'])
@login_required
def list_transactions():
    query = Transaction.query
    item_id = request.args.get('item_id')
    if item_id:
        parsed = parse_int(item_id)
        if parsed is None:
            abort(400, description="item_id must be an integer.")
        query = query.filter(Transaction.item_id == parsed)
    tx_type = request.args.get('type', '').strip().upper()
    if tx_type:
        if tx_type not in TRANSACTION_TYPES:
            abort(400, description=f"Unknown transaction type: {tx_type}.")
        query = query.filter(Transaction.type == tx_type)

    entries = query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()
    return jsonify(transactions=[t.to_dict() for t in entries], count=len(entries))


@bp.route('/<int:transaction_id>', methods=['GET'])
@login_required
def get_transaction(transaction_id):
    entry = db.get_or_404(Transaction, transaction_id, description="Transaction not found.")
    return jsonify(transaction=entry.to_dict())


@bp.route('', methods=['POST'])
@login_required
def create_transaction():
    data = get_payload()
    item_id = parse_int(data.get('item_id'))
    tx_type = (clean_str(data.get('type')) or '').upper()
    quantity = parse_int(data.get('quantity'), minimum=1)

    if item_id is None:
        abort(400, description="item_id is required.")
    if tx_type not in TRANSACTION_TYPES:
        abort(400, description="Type must be IN or OUT.")
    if quantity is None:
        abort(400, description="Quantity must be a positive integer.")

    item = db.get_or_404(Item, item_id, description="Item not found.")

    # Single UPDATE so concurrent OUTs cannot push stock below zero
    if tx_type == TYPE_IN:
        Item.query.filter(Item.id == item.id).update(
            {Item.quantity: Item.quantity + quantity}, synchronize_session=False
        )
    else:
        updated = Item.query.filter(Item.id == item.id, Item.quantity >= quantity).update(
            {Item.quantity: Item.quantity - quantity}, synchronize_session=False
        )
        if not updated:
            db.session.rollback()
            abort(409, description=f"Insufficient stock for {item.sku}.")

    entry = Transaction(
        item_id=item.id,
        user_id=current_user.id,
        type=tx_type,
        quantity=quantity,
        note=clean_str(data.get('note')),
    )
    db.session.add(entry)
    db.session.commit()

    return jsonify(
        message="Transaction recorded.",
        transaction=entry.to_dict(),
        item_quantity=item.quantity,
    ), 201
