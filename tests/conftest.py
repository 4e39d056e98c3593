"""
Pytest fixtures untuk backend dokumen pajak.

Setiap test mendapat aplikasi baru dengan database SQLite in-memory
(TestConfig), skema dibuat lewat db.create_all().
"""

import pytest

from config import TestConfig
from dokumen_pajak import create_app, db
from dokumen_pajak.katalog.utils import create_catalog_item
from dokumen_pajak.transaksi.utils import create_transaction


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_catalog_item(app):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "item_code": f"BRG{counter['n']:03d}",
            "item_name": f"Barang {counter['n']}",
            "type": "goods",
            "unit_price": 100000,
            "description": None,
        }
        data.update(overrides)
        return create_catalog_item(data)

    return _make


@pytest.fixture
def make_transaction(app):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "transaction_id": f"TRX-{counter['n']:04d}",
            "transaction_date": "2024-03-15",
            "customer_name": "Dinas Pendidikan",
            "customer_address": "Jl. Merdeka No. 1, Bandung",
            "treasurer_principal_name": "Budi Santoso",
            "courier": None,
            "additional_notes": None,
            "buyer_npwp": None,
            "service_value": None,
            "service_type": None,
        }
        data.update(overrides)
        return create_transaction(data)

    return _make


@pytest.fixture
def transaction_payload():
    return {
        "transaction_id": "TRX-API-001",
        "transaction_date": "2024-03-15",
        "customer_name": "SMA Negeri 3",
        "customer_address": "Jl. Belitung No. 8, Bandung",
        "treasurer_principal_name": "Siti Aminah",
        "courier": "JNE",
        "additional_notes": "Pembayaran via transfer",
        "buyer_npwp": "01.234.567.8-901.000",
        "service_value": None,
        "service_type": None,
    }
