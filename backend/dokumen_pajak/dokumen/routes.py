from flask import Blueprint, request, jsonify

from ..helpers import format_quantity, format_rupiah, parse_int, require_json
from .utils import DOCUMENT_TYPES, generate_document

dokumen_bp = Blueprint('dokumen', __name__, url_prefix='/api/dokumen', template_folder='templates')


@dokumen_bp.app_template_filter('rupiah')
def rupiah_filter(value):
    return f"Rp {format_rupiah(value)}"


@dokumen_bp.app_template_filter('angka')
def angka_filter(value):
    return format_quantity(value)


@dokumen_bp.app_template_filter('tanggal')
def tanggal_filter(value):
    return value.strftime('%d/%m/%Y') if value else "-"


@dokumen_bp.route('/types', methods=['GET'])
def list_document_types():
    return jsonify([{"document_type": key, "title": title} for key, (_, title) in DOCUMENT_TYPES.items()])


@dokumen_bp.route('/generate', methods=['POST'])
def generate_document_endpoint():
    data = require_json(request)
    html = generate_document(
        parse_int(data.get('transaction_id'), 'transaction_id'),
        data.get('document_type'),
        document_date=data.get('document_date'),
        city_regency=data.get('city_regency'),
        courier_name=data.get('courier_name'),
        bast_recipient=data.get('bast_recipient'),
    )
    return html, 200, {'Content-Type': 'text/html; charset=utf-8'}
