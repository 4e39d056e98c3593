# backend/dokumen_pajak/transaksi/utils.py
"""
Agregat transaksi: membuat transaksi, menambah/menghapus item, dan menjaga
field turunan (subtotal, pajak, bea meterai, total) tetap konsisten.

Setiap operasi yang mengubah data adalah satu unit kerja: baris transaksi
dikunci (SELECT ... FOR UPDATE), item dibaca ulang seluruhnya, hasil hitungan
ditulis sekaligus, lalu commit. Bila ada error, session di-rollback dan tidak
ada perubahan yang tersimpan.
"""

import logging

from sqlalchemy.exc import IntegrityError

from .. import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..helpers import (
    clean_string,
    optional_amount,
    optional_date,
    optional_text,
    parse_bool,
    parse_date,
    parse_int,
    require_text,
)
from ..models import CatalogItem, CatalogSnapshot, Transaction, TransactionItem
from ..pajak import EMPTY_TOTALS, TaxFlags, compute_line_total, recalculate_totals, validate_line_inputs

logger = logging.getLogger(__name__)

HEADER_FIELDS = ("customer_name", "customer_address", "treasurer_principal_name")
OPTIONAL_FIELDS = ("courier", "additional_notes", "buyer_npwp", "service_type")
FLAG_DEFAULTS = {
    "vat_enabled": True,
    "local_tax_enabled": True,
    "pph22_enabled": True,
    "pph23_enabled": False,
}


def _lock_transaction(transaction_pk):
    """Ambil transaksi dengan row lock; mutasi pada transaksi yang sama jadi berurutan."""
    transaction = db.session.execute(
        db.select(Transaction)
        .filter_by(id=transaction_pk)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if transaction is None:
        raise NotFoundError("Transaksi", transaction_pk)
    return transaction


def _current_line_totals(transaction_pk):
    return db.session.execute(
        db.select(TransactionItem.line_total).filter_by(transaction_id=transaction_pk)
    ).scalars().all()


def recalculate(transaction):
    """Hitung ulang semua field turunan dari item yang ada sekarang."""
    db.session.flush()
    totals = recalculate_totals(
        _current_line_totals(transaction.id),
        transaction.service_value,
        TaxFlags.from_transaction(transaction),
    )
    for field, value in totals.as_dict().items():
        setattr(transaction, field, value)
    transaction.updated_at = db.func.current_timestamp()
    return totals


def create_transaction(data):
    transaction_code = require_text(data, "transaction_id")
    fields = {
        "transaction_id": transaction_code,
        "transaction_date": parse_date(data.get("transaction_date"), "transaction_date"),
        "service_value": optional_amount(data, "service_value"),
    }
    for field in HEADER_FIELDS:
        fields[field] = require_text(data, field)
    for field in OPTIONAL_FIELDS:
        fields[field] = optional_text(data, field)
    for flag, default in FLAG_DEFAULTS.items():
        fields[flag] = parse_bool(data, flag, default)

    existing = db.session.execute(
        db.select(Transaction.id).filter_by(transaction_id=transaction_code)
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(
            f"Transaksi '{transaction_code}' sudah ada di database.",
            constraint="transactions.transaction_id",
            value=transaction_code,
        )

    transaction = Transaction(**fields, **EMPTY_TOTALS.as_dict())
    db.session.add(transaction)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(
            f"Transaksi '{transaction_code}' sudah ada di database.",
            constraint="transactions.transaction_id",
            value=transaction_code,
        )
    logger.info(f"Transaksi {transaction.transaction_id} dibuat (id={transaction.id})")
    return transaction


def _parse_item_input(data):
    if "quantity" not in data or data.get("quantity") is None:
        raise ValidationError("quantity wajib diisi", field="quantity")
    discount = data.get("discount") if data.get("discount") is not None else 0
    # Validasi rentang sebelum lookup apa pun; harga katalog dipakai bila unit_price kosong.
    return validate_line_inputs(data["quantity"], data.get("unit_price"), discount)


def add_transaction_item(transaction_pk, data):
    if data.get("catalog_item_id") is None:
        raise ValidationError("catalog_item_id wajib diisi", field="catalog_item_id")
    catalog_item_id = parse_int(data["catalog_item_id"], "catalog_item_id")
    quantity, unit_price, discount = _parse_item_input(data)

    try:
        transaction = _lock_transaction(transaction_pk)
        catalog_item = db.session.get(CatalogItem, catalog_item_id)
        if catalog_item is None:
            raise NotFoundError("Item katalog", catalog_item_id)

        if unit_price is None:
            unit_price = catalog_item.unit_price
        item = TransactionItem(
            transaction_id=transaction.id,
            catalog_item_id=catalog_item.id,
            snapshot=CatalogSnapshot.of(catalog_item),
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            line_total=compute_line_total(quantity, unit_price, discount),
        )
        db.session.add(item)
        totals = recalculate(transaction)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        f"Item {item.item_code} ditambahkan ke transaksi {transaction.transaction_id}: "
        f"subtotal={totals.subtotal} total={totals.total_amount}"
    )
    return item


def remove_transaction_item(item_id):
    try:
        item = db.session.get(TransactionItem, item_id)
        if item is None:
            raise NotFoundError("Item transaksi", item_id)
        transaction = _lock_transaction(item.transaction_id)
        db.session.delete(item)
        totals = recalculate(transaction)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        f"Item {item_id} dihapus dari transaksi {transaction.transaction_id}: "
        f"subtotal={totals.subtotal} total={totals.total_amount}"
    )


def recalculate_transaction(transaction_pk):
    try:
        transaction = _lock_transaction(transaction_pk)
        recalculate(transaction)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return transaction


def update_transaction(transaction_pk, data):
    """Ubah header, flag pajak, atau nilai jasa; field turunan langsung dihitung ulang."""
    if "transaction_id" in data:
        raise ValidationError("transaction_id tidak dapat diubah", field="transaction_id")

    changes = {}
    if "transaction_date" in data:
        changes["transaction_date"] = parse_date(data["transaction_date"], "transaction_date")
    for field in HEADER_FIELDS:
        if field in data:
            changes[field] = require_text(data, field)
    for field in OPTIONAL_FIELDS:
        if field in data:
            changes[field] = optional_text(data, field)
    for flag in FLAG_DEFAULTS:
        if flag in data:
            changes[flag] = parse_bool(data, flag, None)
            if changes[flag] is None:
                raise ValidationError(f"{flag} harus bernilai true atau false", field=flag)
    if "service_value" in data:
        changes["service_value"] = optional_amount(data, "service_value")

    try:
        transaction = _lock_transaction(transaction_pk)
        for field, value in changes.items():
            setattr(transaction, field, value)
        recalculate(transaction)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Transaksi {transaction.transaction_id} diperbarui: {sorted(changes)}")
    return transaction


def delete_transaction(transaction_pk):
    transaction = db.session.get(Transaction, transaction_pk)
    if transaction is None:
        raise NotFoundError("Transaksi", transaction_pk)
    db.session.delete(transaction)
    db.session.commit()
    logger.info(f"Transaksi {transaction.transaction_id} dihapus")


def get_transaction(transaction_pk):
    return db.session.get(Transaction, transaction_pk)


def list_transactions(start_date=None, end_date=None, customer_name=None):
    start_date = optional_date(start_date, "start_date")
    end_date = optional_date(end_date, "end_date")
    customer_name = clean_string(customer_name)

    query = db.select(Transaction)
    if start_date:
        query = query.where(Transaction.transaction_date >= start_date)
    if end_date:
        query = query.where(Transaction.transaction_date <= end_date)
    if customer_name:
        query = query.where(Transaction.customer_name.ilike(f"%{customer_name}%"))
    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return db.session.execute(query).scalars().all()


def serialize_item(item):
    return {
        "id": item.id,
        "transaction_id": item.transaction_id,
        "catalog_item_id": item.catalog_item_id,
        "item_code": item.item_code,
        "item_name": item.item_name,
        "quantity": float(item.quantity),
        "unit_price": float(item.unit_price),
        "discount": float(item.discount),
        "line_total": float(item.line_total),
        "created_at": item.created_at.isoformat() if item.created_at else None,
    }


def serialize_transaction(transaction, include_items=False):
    data = {
        "id": transaction.id,
        "transaction_id": transaction.transaction_id,
        "transaction_date": transaction.transaction_date.strftime('%Y-%m-%d'),
        "customer_name": transaction.customer_name,
        "customer_address": transaction.customer_address,
        "treasurer_principal_name": transaction.treasurer_principal_name,
        "courier": transaction.courier,
        "additional_notes": transaction.additional_notes,
        "buyer_npwp": transaction.buyer_npwp,
        "service_value": float(transaction.service_value) if transaction.service_value is not None else None,
        "service_type": transaction.service_type,
        "vat_enabled": transaction.vat_enabled,
        "local_tax_enabled": transaction.local_tax_enabled,
        "pph22_enabled": transaction.pph22_enabled,
        "pph23_enabled": transaction.pph23_enabled,
        "subtotal": float(transaction.subtotal),
        "vat_amount": float(transaction.vat_amount),
        "local_tax_amount": float(transaction.local_tax_amount),
        "pph22_amount": float(transaction.pph22_amount),
        "pph23_amount": float(transaction.pph23_amount),
        "stamp_duty_required": transaction.stamp_duty_required,
        "stamp_duty_amount": float(transaction.stamp_duty_amount),
        "total_amount": float(transaction.total_amount),
        "created_at": transaction.created_at.isoformat() if transaction.created_at else None,
        "updated_at": transaction.updated_at.isoformat() if transaction.updated_at else None,
    }
    if include_items:
        data["items"] = [serialize_item(item) for item in transaction.items]
    return data
