import traceback
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from .. import db
from ..helpers import require_json
from .utils import (
    create_catalog_item,
    delete_catalog_item,
    get_catalog_item,
    list_catalog_items,
    serialize_catalog_item,
    update_catalog_item,
)

katalog_bp = Blueprint('katalog', __name__, url_prefix='/api/katalog')


@katalog_bp.route('', methods=['GET'])
def list_catalog_endpoint():
    items = list_catalog_items(item_type=request.args.get('type'), search=request.args.get('search'))
    return jsonify([serialize_catalog_item(item) for item in items])


@katalog_bp.route('', methods=['POST'])
def create_catalog_endpoint():
    data = require_json(request)
    try:
        item = create_catalog_item(data)
        return jsonify(serialize_catalog_item(item)), 201
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving catalog item: {e}\n{traceback.format_exc()}")
        return jsonify(error=f"Kesalahan saat menyimpan: {str(e)}"), 500


@katalog_bp.route('/<int:item_id>', methods=['GET'])
def get_catalog_endpoint(item_id):
    return jsonify(serialize_catalog_item(get_catalog_item(item_id)))


@katalog_bp.route('/<int:item_id>', methods=['PATCH', 'PUT'])
def update_catalog_endpoint(item_id):
    data = require_json(request)
    try:
        item = update_catalog_item(item_id, data)
        return jsonify(serialize_catalog_item(item))
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating catalog item: {e}\n{traceback.format_exc()}")
        return jsonify(error=f"Kesalahan saat memperbarui: {str(e)}"), 500


@katalog_bp.route('/<int:item_id>', methods=['DELETE'])
def delete_catalog_endpoint(item_id):
    try:
        delete_catalog_item(item_id)
        return jsonify(message="Item katalog berhasil dihapus!"), 200
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting catalog item: {e}\n{traceback.format_exc()}")
        return jsonify(error=f"Kesalahan saat menghapus: {str(e)}"), 500
