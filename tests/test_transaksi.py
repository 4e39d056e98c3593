"""Agregat transaksi: tambah/hapus item selalu diikuti hitung ulang total."""

from datetime import date
from decimal import Decimal

import pytest

from dokumen_pajak import db
from dokumen_pajak.errors import ConflictError, NotFoundError, ValidationError
from dokumen_pajak.katalog.utils import update_catalog_item
from dokumen_pajak.models import CatalogSnapshot, Transaction, TransactionItem
from dokumen_pajak.pajak import compute_line_total
from dokumen_pajak.transaksi.utils import (
    add_transaction_item,
    delete_transaction,
    get_transaction,
    list_transactions,
    recalculate_transaction,
    remove_transaction_item,
    update_transaction,
)

pytestmark = pytest.mark.usefixtures("app")

DERIVED_FIELDS = (
    "subtotal",
    "vat_amount",
    "local_tax_amount",
    "pph22_amount",
    "pph23_amount",
    "stamp_duty_required",
    "stamp_duty_amount",
    "total_amount",
)


def derived(transaction):
    transaction = db.session.get(Transaction, transaction.id)
    return {field: getattr(transaction, field) for field in DERIVED_FIELDS}


def assert_all_zero(transaction):
    values = derived(transaction)
    assert values.pop("stamp_duty_required") is False
    assert all(value == 0 for value in values.values()), values


class TestCreateTransaction:
    def test_new_transaction_is_zeroed(self, make_transaction):
        transaction = make_transaction()
        assert transaction.id is not None
        assert transaction.transaction_date == date(2024, 3, 15)
        assert transaction.vat_enabled is True
        assert transaction.local_tax_enabled is True
        assert transaction.pph22_enabled is True
        assert transaction.pph23_enabled is False
        assert_all_zero(transaction)

    def test_duplicate_transaction_id(self, make_transaction):
        make_transaction(transaction_id="TRX-DUP")
        with pytest.raises(ConflictError) as exc:
            make_transaction(transaction_id="TRX-DUP")
        assert exc.value.value == "TRX-DUP"
        assert exc.value.constraint == "transactions.transaction_id"
        assert db.session.execute(db.select(db.func.count(Transaction.id))).scalar() == 1

    @pytest.mark.parametrize("field", ["transaction_id", "customer_name", "customer_address", "treasurer_principal_name"])
    def test_required_fields(self, make_transaction, field):
        with pytest.raises(ValidationError) as exc:
            make_transaction(**{field: "   "})
        assert exc.value.field == field

    def test_invalid_date(self, make_transaction):
        with pytest.raises(ValidationError) as exc:
            make_transaction(transaction_date="15/03/2024")
        assert exc.value.field == "transaction_date"

    def test_negative_service_value(self, make_transaction):
        with pytest.raises(ValidationError):
            make_transaction(service_value=-1)


class TestAddItem:
    def test_scenario_single_item(self, make_transaction, make_catalog_item):
        transaction = make_transaction(vat_enabled=True, local_tax_enabled=True, pph22_enabled=True, pph23_enabled=False)
        catalog = make_catalog_item(item_code="TEST001", item_name="Test Product", unit_price=100000)

        item = add_transaction_item(transaction.id, {
            "catalog_item_id": catalog.id, "quantity": 2, "unit_price": 100000, "discount": 10,
        })

        assert item.item_code == "TEST001"
        assert item.item_name == "Test Product"
        assert item.line_total == Decimal("180000")
        values = derived(transaction)
        assert values["subtotal"] == Decimal("180000")
        assert values["vat_amount"] == Decimal("19800")
        assert values["local_tax_amount"] == Decimal("1800")
        assert values["pph22_amount"] == Decimal("2700")
        assert values["pph23_amount"] == 0
        assert values["total_amount"] == Decimal("204300")
        assert values["stamp_duty_required"] is False

    def test_crossing_stamp_duty_threshold(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=100000)
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 2, "discount": 10})
        assert derived(transaction)["stamp_duty_required"] is False

        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 50})

        values = derived(transaction)
        assert values["subtotal"] == Decimal("5180000")
        assert values["stamp_duty_required"] is True
        assert values["stamp_duty_amount"] == Decimal("10000")
        # 5180000 + 569800 + 51800 + 77700 + 10000
        assert values["total_amount"] == Decimal("5889300")

    def test_unit_price_defaults_to_catalog(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price="250000.50")
        item = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": "1.5"})
        assert item.unit_price == Decimal("250000.50")
        assert item.discount == 0
        assert item.line_total == Decimal("375000.75")

    def test_inputs_stored_at_column_scale(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=1000000)
        item = add_transaction_item(
            transaction.id,
            {"catalog_item_id": catalog.id, "quantity": "1.005", "unit_price": "1000000.004", "discount": "10.555"},
        )

        db.session.expire_all()
        stored = db.session.get(TransactionItem, item.id)
        assert stored.quantity == Decimal("1.01")
        assert stored.unit_price == Decimal("1000000.00")
        assert stored.discount == Decimal("10.56")
        assert stored.line_total == Decimal("903344.00")
        assert stored.line_total == compute_line_total(stored.quantity, stored.unit_price, stored.discount)

        recalculate_transaction(transaction.id)
        assert derived(transaction)["subtotal"] == Decimal("903344.00")

    def test_unknown_catalog_item_leaves_totals(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item()
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})
        before = derived(transaction)

        with pytest.raises(NotFoundError) as exc:
            add_transaction_item(transaction.id, {"catalog_item_id": 9999, "quantity": 1})

        assert exc.value.entity_id == 9999
        assert derived(transaction) == before
        assert len(get_transaction(transaction.id).items) == 1

    def test_unknown_transaction(self, make_catalog_item):
        catalog = make_catalog_item()
        with pytest.raises(NotFoundError) as exc:
            add_transaction_item(4242, {"catalog_item_id": catalog.id, "quantity": 1})
        assert exc.value.entity_id == 4242
        assert db.session.execute(db.select(db.func.count(TransactionItem.id))).scalar() == 0

    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"quantity": 0}, "quantity"),
            ({"quantity": -2}, "quantity"),
            ({"quantity": 1, "unit_price": 0}, "unit_price"),
            ({"quantity": 1, "discount": 101}, "discount"),
            ({"quantity": 1, "discount": -5}, "discount"),
            ({}, "quantity"),
        ],
    )
    def test_invalid_item_rejected(self, make_transaction, make_catalog_item, payload, field):
        transaction = make_transaction()
        catalog = make_catalog_item()
        with pytest.raises(ValidationError) as exc:
            add_transaction_item(transaction.id, dict(payload, catalog_item_id=catalog.id))
        assert exc.value.field == field
        assert get_transaction(transaction.id).items == []
        assert_all_zero(transaction)

    def test_validation_runs_before_lookup(self):
        with pytest.raises(ValidationError):
            add_transaction_item(4242, {"catalog_item_id": 9999, "quantity": 0})

    def test_snapshot_survives_catalog_changes(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(item_code="OLD-01", item_name="Nama Lama", unit_price=1000)
        item = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})

        update_catalog_item(catalog.id, {"item_code": "NEW-01", "item_name": "Nama Baru", "unit_price": 5000})

        item = db.session.get(TransactionItem, item.id)
        assert item.snapshot == CatalogSnapshot("OLD-01", "Nama Lama")
        assert item.unit_price == Decimal("1000")
        assert derived(transaction)["subtotal"] == Decimal("1000")


class TestRemoveItem:
    def test_recalculates_from_remaining_items(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=100)
        keep = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 5})
        drop = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 3})

        remove_transaction_item(drop.id)

        values = derived(transaction)
        assert values["subtotal"] == Decimal("500")
        assert values["vat_amount"] == Decimal("55")
        assert values["local_tax_amount"] == Decimal("5")
        assert values["pph22_amount"] == Decimal("7.50")
        assert values["total_amount"] == Decimal("567.50")
        assert [i.id for i in get_transaction(transaction.id).items] == [keep.id]

    def test_removing_only_item_zeroes_totals(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=100000)
        item = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 60})
        assert derived(transaction)["stamp_duty_required"] is True

        remove_transaction_item(item.id)

        assert_all_zero(transaction)

    def test_pph23_from_service_value(self, make_transaction, make_catalog_item):
        transaction = make_transaction(pph23_enabled=True, service_value=1000, service_type="Instalasi")
        catalog = make_catalog_item(unit_price=100)
        first = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 2})

        remove_transaction_item(first.id)

        assert derived(transaction)["pph23_amount"] == Decimal("20")

    def test_removing_last_item_zeroes_pph23(self, make_transaction, make_catalog_item):
        transaction = make_transaction(pph23_enabled=True, service_value=1000000)
        catalog = make_catalog_item(unit_price=100)
        item = add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})
        assert derived(transaction)["pph23_amount"] == Decimal("20000")

        remove_transaction_item(item.id)

        assert_all_zero(transaction)

    def test_unknown_item(self):
        with pytest.raises(NotFoundError) as exc:
            remove_transaction_item(777)
        assert exc.value.entity_id == 777


class TestRecalculate:
    def test_idempotent(self, make_transaction, make_catalog_item):
        transaction = make_transaction(pph23_enabled=True, service_value="12345.67")
        catalog = make_catalog_item(unit_price="3333.33")
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 3, "discount": "7.5"})

        recalculate_transaction(transaction.id)
        first = derived(transaction)
        recalculate_transaction(transaction.id)
        assert derived(transaction) == first

    def test_empty_transaction_stays_zero(self, make_transaction):
        transaction = make_transaction(pph23_enabled=True, service_value=1000000)
        assert_all_zero(transaction)

        recalculate_transaction(transaction.id)

        assert_all_zero(transaction)

    def test_unknown_transaction(self):
        with pytest.raises(NotFoundError):
            recalculate_transaction(123)

    def test_interleaved_mutations_match_fresh_total(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        cheap = make_catalog_item(unit_price=1500)
        pricey = make_catalog_item(unit_price=2750000)
        a = add_transaction_item(transaction.id, {"catalog_item_id": cheap.id, "quantity": 4})
        add_transaction_item(transaction.id, {"catalog_item_id": pricey.id, "quantity": 2, "discount": 5})
        remove_transaction_item(a.id)
        add_transaction_item(transaction.id, {"catalog_item_id": cheap.id, "quantity": 1})

        values = derived(transaction)
        # 2 * 2750000 * 0.95 + 1500
        assert values["subtotal"] == Decimal("5226500")
        assert values["stamp_duty_required"] is True


class TestUpdateTransaction:
    def test_toggling_flag_off_zeroes_amount(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=100000)
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 2, "discount": 10})
        assert derived(transaction)["vat_amount"] == Decimal("19800")

        update_transaction(transaction.id, {"vat_enabled": False, "local_tax_enabled": False})

        values = derived(transaction)
        assert values["vat_amount"] == 0
        assert values["local_tax_amount"] == 0
        assert values["total_amount"] == Decimal("182700")

    def test_enabling_pph23(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item(unit_price=1000)
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})

        update_transaction(transaction.id, {"pph23_enabled": True, "service_value": 50000, "service_type": "Konsultasi"})

        refreshed = get_transaction(transaction.id)
        assert refreshed.pph23_amount == Decimal("1000")
        assert refreshed.service_type == "Konsultasi"

    def test_header_fields(self, make_transaction):
        transaction = make_transaction()
        update_transaction(transaction.id, {"customer_name": "Puskesmas Cibiru", "courier": ""})
        refreshed = get_transaction(transaction.id)
        assert refreshed.customer_name == "Puskesmas Cibiru"
        assert refreshed.courier is None

    def test_transaction_id_is_immutable(self, make_transaction):
        transaction = make_transaction(transaction_id="TRX-FIX")
        with pytest.raises(ValidationError):
            update_transaction(transaction.id, {"transaction_id": "TRX-NEW"})
        assert get_transaction(transaction.id).transaction_id == "TRX-FIX"

    def test_invalid_flag(self, make_transaction):
        transaction = make_transaction()
        with pytest.raises(ValidationError) as exc:
            update_transaction(transaction.id, {"vat_enabled": "maybe"})
        assert exc.value.field == "vat_enabled"


class TestDeleteAndQuery:
    def test_delete_cascades_to_items(self, make_transaction, make_catalog_item):
        transaction = make_transaction()
        catalog = make_catalog_item()
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 1})
        add_transaction_item(transaction.id, {"catalog_item_id": catalog.id, "quantity": 2})

        delete_transaction(transaction.id)

        assert get_transaction(transaction.id) is None
        assert db.session.execute(db.select(db.func.count(TransactionItem.id))).scalar() == 0

    def test_delete_unknown(self):
        with pytest.raises(NotFoundError):
            delete_transaction(55)

    def test_get_unknown_returns_none(self):
        assert get_transaction(1) is None

    def test_list_filters(self, make_transaction):
        make_transaction(transaction_id="A", transaction_date="2024-01-10", customer_name="Dinas Kesehatan")
        make_transaction(transaction_id="B", transaction_date="2024-02-10", customer_name="SMA Negeri 1")
        make_transaction(transaction_id="C", transaction_date="2024-03-10", customer_name="dinas pendidikan")

        assert [t.transaction_id for t in list_transactions()] == ["C", "B", "A"]
        assert [t.transaction_id for t in list_transactions(customer_name="DINAS")] == ["C", "A"]
        assert [t.transaction_id for t in list_transactions(start_date="2024-02-10")] == ["C", "B"]
        assert [t.transaction_id for t in list_transactions(end_date="2024-02-10")] == ["B", "A"]
        assert [
            t.transaction_id
            for t in list_transactions(start_date="2024-01-01", end_date="2024-02-28", customer_name="negeri")
        ] == ["B"]

    def test_list_rejects_bad_date(self):
        with pytest.raises(ValidationError):
            list_transactions(start_date="kemarin")
