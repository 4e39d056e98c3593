# backend/dokumen_pajak/profil_toko/utils.py

import logging
import re

from .. import db
from ..errors import ValidationError
from ..helpers import require_text
from ..models import STORE_PROFILE_ID, StoreProfile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("store_name", "full_address", "phone_number", "email", "npwp")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_store_profile():
    return db.session.get(StoreProfile, STORE_PROFILE_ID)


def save_store_profile(data):
    """Buat profil toko bila belum ada, selain itu perbarui profil yang sama."""
    values = {field: require_text(data, field) for field in PROFILE_FIELDS}
    if not EMAIL_PATTERN.match(values["email"]):
        raise ValidationError("Format email tidak valid", field="email")

    profile = get_store_profile()
    created = profile is None
    if created:
        profile = StoreProfile(id=STORE_PROFILE_ID)
        db.session.add(profile)
    for field, value in values.items():
        setattr(profile, field, value)
    db.session.commit()

    logger.info(f"Profil toko {'dibuat' if created else 'diperbarui'}: {profile.store_name}")
    return profile, created


def serialize_store_profile(profile):
    if profile is None:
        return None
    return {
        "id": profile.id,
        "store_name": profile.store_name,
        "full_address": profile.full_address,
        "phone_number": profile.phone_number,
        "email": profile.email,
        "npwp": profile.npwp,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }
