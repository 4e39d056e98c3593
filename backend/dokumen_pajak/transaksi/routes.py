import traceback
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from .. import db
from ..errors import NotFoundError
from ..helpers import require_json
from . import utils

transaksi_bp = Blueprint('transaksi', __name__, url_prefix='/api/transaksi')


def _database_error(action, error):
    db.session.rollback()
    current_app.logger.error(f"Error {action}: {error}\n{traceback.format_exc()}")
    return jsonify(error=f"Kesalahan saat {action}: {str(error)}"), 500


@transaksi_bp.route('', methods=['POST'])
def create_transaction_endpoint():
    data = require_json(request)
    try:
        transaction = utils.create_transaction(data)
    except SQLAlchemyError as e:
        return _database_error("menyimpan transaksi", e)
    return jsonify(utils.serialize_transaction(transaction, include_items=True)), 201


@transaksi_bp.route('', methods=['GET'])
def list_transactions_endpoint():
    transactions = utils.list_transactions(
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        customer_name=request.args.get('customer_name'),
    )
    return jsonify([utils.serialize_transaction(t) for t in transactions])


@transaksi_bp.route('/<int:transaction_pk>', methods=['GET'])
def get_transaction_endpoint(transaction_pk):
    transaction = utils.get_transaction(transaction_pk)
    if transaction is None:
        raise NotFoundError("Transaksi", transaction_pk)
    return jsonify(utils.serialize_transaction(transaction, include_items=True))


@transaksi_bp.route('/<int:transaction_pk>', methods=['PATCH', 'PUT'])
def update_transaction_endpoint(transaction_pk):
    data = require_json(request)
    try:
        transaction = utils.update_transaction(transaction_pk, data)
    except SQLAlchemyError as e:
        return _database_error("memperbarui transaksi", e)
    return jsonify(utils.serialize_transaction(transaction, include_items=True))


@transaksi_bp.route('/<int:transaction_pk>', methods=['DELETE'])
def delete_transaction_endpoint(transaction_pk):
    try:
        utils.delete_transaction(transaction_pk)
    except SQLAlchemyError as e:
        return _database_error("menghapus transaksi", e)
    return jsonify(message="Transaksi berhasil dihapus!"), 200


@transaksi_bp.route('/<int:transaction_pk>/items', methods=['GET'])
def list_items_endpoint(transaction_pk):
    transaction = utils.get_transaction(transaction_pk)
    if transaction is None:
        raise NotFoundError("Transaksi", transaction_pk)
    return jsonify([utils.serialize_item(item) for item in transaction.items])


@transaksi_bp.route('/<int:transaction_pk>/items', methods=['POST'])
def add_item_endpoint(transaction_pk):
    data = require_json(request)
    try:
        item = utils.add_transaction_item(transaction_pk, data)
    except SQLAlchemyError as e:
        return _database_error("menambah item", e)
    return jsonify(utils.serialize_item(item)), 201


@transaksi_bp.route('/items/<int:item_id>', methods=['DELETE'])
def remove_item_endpoint(item_id):
    try:
        utils.remove_transaction_item(item_id)
    except SQLAlchemyError as e:
        return _database_error("menghapus item", e)
    return jsonify(message="Item berhasil dihapus!"), 200


@transaksi_bp.route('/<int:transaction_pk>/recalculate', methods=['POST'])
def recalculate_endpoint(transaction_pk):
    try:
        transaction = utils.recalculate_transaction(transaction_pk)
    except SQLAlchemyError as e:
        return _database_error("menghitung ulang transaksi", e)
    return jsonify(utils.serialize_transaction(transaction))
