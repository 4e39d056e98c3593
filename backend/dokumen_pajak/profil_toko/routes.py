import traceback
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from .. import db
from ..helpers import require_json
from .utils import get_store_profile, save_store_profile, serialize_store_profile

profil_toko_bp = Blueprint('profil_toko', __name__, url_prefix='/api/profil-toko')


@profil_toko_bp.route('', methods=['GET'])
def get_store_profile_endpoint():
    # null bila profil belum pernah diisi
    return jsonify(serialize_store_profile(get_store_profile()))


@profil_toko_bp.route('', methods=['PUT', 'POST'])
def save_store_profile_endpoint():
    data = require_json(request)
    try:
        profile, created = save_store_profile(data)
        return jsonify(serialize_store_profile(profile)), 201 if created else 200
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving store profile: {e}\n{traceback.format_exc()}")
        return jsonify(error=f"Kesalahan saat menyimpan: {str(e)}"), 500
