# backend/dokumen_pajak/dokumen/utils.py

from flask import current_app, render_template

from ..errors import NotFoundError, ValidationError
from ..helpers import clean_string, optional_date
from ..profil_toko.utils import get_store_profile
from ..transaksi.utils import get_transaction

# document_type -> (template, judul)
DOCUMENT_TYPES = {
    "sales_note": ("dokumen/sales_note.html", "Nota Penjualan"),
    "payment_receipt": ("dokumen/payment_receipt.html", "Kuitansi"),
    "invoice": ("dokumen/invoice.html", "Invoice"),
    "bast": ("dokumen/bast.html", "Berita Acara Serah Terima (BAST)"),
    "purchase_order": ("dokumen/purchase_order.html", "Purchase Order"),
    "tax_invoice": ("dokumen/tax_invoice.html", "Faktur Pajak"),
    "proforma_invoice": ("dokumen/proforma_invoice.html", "Proforma Invoice"),
}


def generate_document(transaction_pk, document_type, document_date=None, city_regency=None,
                      courier_name=None, bast_recipient=None):
    """Render dokumen HTML dari transaksi. Tidak mengubah data apa pun."""
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError(f"Jenis dokumen '{document_type}' tidak didukung", field="document_type")
    document_date = optional_date(document_date, "document_date")

    transaction = get_transaction(transaction_pk)
    if transaction is None:
        raise NotFoundError("Transaksi", transaction_pk)

    template, title = DOCUMENT_TYPES[document_type]
    return render_template(
        template,
        title=title,
        transaction=transaction,
        items=list(transaction.items),
        store=get_store_profile(),
        document_date=document_date or transaction.transaction_date,
        city_regency=clean_string(city_regency) or current_app.config.get('DEFAULT_CITY_REGENCY', 'Jakarta'),
        courier_name=clean_string(courier_name) or transaction.courier or "",
        bast_recipient=clean_string(bast_recipient) or transaction.customer_name,
    )
