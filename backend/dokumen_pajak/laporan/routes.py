# backend/dokumen_pajak/laporan/routes.py

import io
import pandas as pd
from datetime import datetime
from decimal import Decimal
from flask import Blueprint, jsonify, request, send_file
from ..transaksi.utils import list_transactions, serialize_transaction

laporan_bp = Blueprint('laporan', __name__, url_prefix='/api/laporan')

SUMMARY_FIELDS = ('subtotal', 'vat_amount', 'local_tax_amount', 'pph22_amount', 'pph23_amount', 'stamp_duty_amount', 'total_amount')

EXPORT_COLUMNS = {
    'transaction_id': 'No. Transaksi',
    'transaction_date': 'Tanggal',
    'customer_name': 'Pelanggan',
    'buyer_npwp': 'NPWP Pembeli',
    'subtotal': 'Subtotal',
    'vat_amount': 'PPN',
    'local_tax_amount': 'Pajak Daerah',
    'pph22_amount': 'PPh 22',
    'pph23_amount': 'PPh 23',
    'stamp_duty_amount': 'Bea Meterai',
    'total_amount': 'Total',
}


def _filtered_transactions():
    return list_transactions(
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        customer_name=request.args.get('customer_name'),
    )


def summarize(transactions):
    totals = {field: Decimal('0.00') for field in SUMMARY_FIELDS}
    for t in transactions:
        for field in SUMMARY_FIELDS:
            totals[field] += getattr(t, field)
    summary = {field: float(value) for field, value in totals.items()}
    summary['count'] = len(transactions)
    summary['stamp_duty_count'] = sum(1 for t in transactions if t.stamp_duty_required)
    return summary


@laporan_bp.route('/transaksi', methods=['GET'])
def get_laporan_transaksi():
    transactions = _filtered_transactions()
    return jsonify(
        transactions=[serialize_transaction(t) for t in transactions],
        summary=summarize(transactions),
    )


@laporan_bp.route('/export/transaksi', methods=['GET'])
def export_laporan_transaksi():
    transactions = _filtered_transactions()
    if not transactions:
        return jsonify(error="Tidak ada data untuk diekspor"), 404

    df = pd.DataFrame([serialize_transaction(t) for t in transactions])
    df = df[list(EXPORT_COLUMNS)].rename(columns=EXPORT_COLUMNS)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df.to_excel(writer, index=False, sheet_name='Laporan')
        money_format = writer.book.add_format({'num_format': '#,##0.00'})
        worksheet = writer.sheets['Laporan']
        worksheet.set_column(0, 3, 22)
        worksheet.set_column(4, len(EXPORT_COLUMNS) - 1, 16, money_format)
    output.seek(0)

    return send_file(
        output,
        as_attachment=True,
        download_name=f'laporan_transaksi_{datetime.now().strftime("%Y%m%d")}.xlsx',
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
