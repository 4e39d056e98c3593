# backend/dokumen_pajak/katalog/utils.py

import logging

from .. import db
from ..errors import ConflictError, NotFoundError, ReferentialIntegrityError, ValidationError
from ..helpers import clean_string, optional_text, require_text
from ..models import CatalogItem, TransactionItem
from ..pajak import quantize_money, to_decimal

logger = logging.getLogger(__name__)

ITEM_TYPES = ("goods", "service")


def _parse_type(value):
    item_type = clean_string(value)
    if item_type not in ITEM_TYPES:
        raise ValidationError("type harus 'goods' atau 'service'", field="type")
    return item_type


def _parse_unit_price(value):
    if value is None:
        raise ValidationError("unit_price wajib diisi", field="unit_price")
    unit_price = to_decimal(value, "unit_price")
    if unit_price <= 0:
        raise ValidationError("unit_price harus lebih besar dari 0", field="unit_price")
    return quantize_money(unit_price)


def _ensure_unique_code(item_code, exclude_id=None):
    query = db.select(CatalogItem.id).filter_by(item_code=item_code)
    if exclude_id is not None:
        query = query.where(CatalogItem.id != exclude_id)
    if db.session.execute(query).first() is not None:
        raise ConflictError(
            f"Kode barang '{item_code}' sudah dipakai.",
            constraint="catalog_items.item_code",
            value=item_code,
        )


def create_catalog_item(data):
    item_code = require_text(data, "item_code")
    item = CatalogItem(
        item_code=item_code,
        item_name=require_text(data, "item_name"),
        type=_parse_type(data.get("type")),
        unit_price=_parse_unit_price(data.get("unit_price")),
        description=optional_text(data, "description"),
    )
    _ensure_unique_code(item_code)
    db.session.add(item)
    db.session.commit()
    logger.info(f"Item katalog {item.item_code} dibuat (id={item.id})")
    return item


def list_catalog_items(item_type=None, search=None):
    query = db.select(CatalogItem)
    if item_type:
        query = query.where(CatalogItem.type == _parse_type(item_type))
    search = clean_string(search)
    if search:
        pattern = f"%{search}%"
        query = query.where(db.or_(CatalogItem.item_name.ilike(pattern), CatalogItem.item_code.ilike(pattern)))
    return db.session.execute(query.order_by(CatalogItem.item_code)).scalars().all()


def get_catalog_item(item_id):
    item = db.session.get(CatalogItem, item_id)
    if item is None:
        raise NotFoundError("Item katalog", item_id)
    return item


def update_catalog_item(item_id, data):
    """Update sebagian; hanya field yang dikirim yang diubah."""
    item = get_catalog_item(item_id)
    changes = {}
    if "item_code" in data:
        changes["item_code"] = require_text(data, "item_code")
        _ensure_unique_code(changes["item_code"], exclude_id=item.id)
    if "item_name" in data:
        changes["item_name"] = require_text(data, "item_name")
    if "type" in data:
        changes["type"] = _parse_type(data.get("type"))
    if "unit_price" in data:
        changes["unit_price"] = _parse_unit_price(data.get("unit_price"))
    if "description" in data:
        changes["description"] = optional_text(data, "description")

    for field, value in changes.items():
        setattr(item, field, value)
    db.session.commit()
    logger.info(f"Item katalog {item.item_code} diperbarui")
    return item


def delete_catalog_item(item_id):
    item = get_catalog_item(item_id)
    reference_count = db.session.execute(
        db.select(db.func.count(TransactionItem.id)).filter_by(catalog_item_id=item_id)
    ).scalar()
    if reference_count:
        raise ReferentialIntegrityError(
            f"Item katalog dengan id {item_id} tidak dapat dihapus karena dipakai di {reference_count} item transaksi",
            entity_id=item_id,
            reference_count=reference_count,
        )
    db.session.delete(item)
    db.session.commit()
    logger.info(f"Item katalog {item.item_code} dihapus")


def serialize_catalog_item(item):
    return {
        "id": item.id,
        "item_code": item.item_code,
        "item_name": item.item_name,
        "type": item.type,
        "unit_price": float(item.unit_price),
        "description": item.description,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
    }
