# backend/dokumen_pajak/models.py
from dataclasses import dataclass

from sqlalchemy.orm import composite

from . import db

STORE_PROFILE_ID = 1


class StoreProfile(db.Model):
    """Profil toko. Hanya ada satu baris dengan id STORE_PROFILE_ID."""
    __tablename__ = 'store_profiles'
    id = db.Column(db.Integer, primary_key=True)
    store_name = db.Column(db.Text, nullable=False)
    full_address = db.Column(db.Text, nullable=False)
    phone_number = db.Column(db.Text, nullable=False)
    email = db.Column(db.Text, nullable=False)
    npwp = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())


class CatalogItem(db.Model):
    __tablename__ = 'catalog_items'
    id = db.Column(db.Integer, primary_key=True)
    item_code = db.Column(db.String(100), unique=True, nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.Enum('goods', 'service', name='item_type'), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())


class Transaction(db.Model):
    __tablename__ = 'transactions'
    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.String(100), unique=True, nullable=False)
    transaction_date = db.Column(db.Date, nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)
    treasurer_principal_name = db.Column(db.String(255), nullable=False)
    courier = db.Column(db.String(255), nullable=True)
    additional_notes = db.Column(db.Text, nullable=True)
    buyer_npwp = db.Column(db.String(100), nullable=True)

    service_value = db.Column(db.Numeric(15, 2), nullable=True)
    service_type = db.Column(db.String(255), nullable=True)

    vat_enabled = db.Column(db.Boolean, nullable=False, default=True)
    local_tax_enabled = db.Column(db.Boolean, nullable=False, default=True)
    pph22_enabled = db.Column(db.Boolean, nullable=False, default=True)
    pph23_enabled = db.Column(db.Boolean, nullable=False, default=False)

    # Field turunan, hanya diisi lewat transaksi.utils.recalculate
    subtotal = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    vat_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    local_tax_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    pph22_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    pph23_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    stamp_duty_required = db.Column(db.Boolean, nullable=False, default=False)
    stamp_duty_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    items = db.relationship(
        'TransactionItem',
        back_populates='transaction',
        cascade='all, delete-orphan',
        order_by='TransactionItem.id',
    )


@dataclass(frozen=True)
class CatalogSnapshot:
    """Kode dan nama barang yang disalin dari katalog saat item ditambahkan."""
    item_code: str
    item_name: str

    @classmethod
    def of(cls, catalog_item):
        return cls(catalog_item.item_code, catalog_item.item_name)


class TransactionItem(db.Model):
    __tablename__ = 'transaction_items'
    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False, index=True)
    catalog_item_id = db.Column(db.Integer, db.ForeignKey('catalog_items.id'), nullable=False, index=True)
    item_code = db.Column(db.String(100), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(10, 2), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    line_total = db.Column(db.Numeric(15, 2), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    snapshot = composite(CatalogSnapshot, item_code, item_name)

    transaction = db.relationship('Transaction', back_populates='items')
    catalog_item = db.relationship('CatalogItem')
