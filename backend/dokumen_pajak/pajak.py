# backend/dokumen_pajak/pajak.py
"""
Perhitungan line total, subtotal, pajak, dan bea meterai.

Semua fungsi di sini murni (tanpa akses database) dan bekerja dengan
Decimal. Nilai uang dibulatkan half-up ke 2 desimal, sama seperti kolom
Numeric(15, 2) tempat hasilnya disimpan.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

VAT_RATE = Decimal("0.11")          # PPN
LOCAL_TAX_RATE = Decimal("0.01")    # pajak daerah
PPH22_RATE = Decimal("0.015")
PPH23_RATE = Decimal("0.02")        # dari nilai jasa (service_value)

STAMP_DUTY_THRESHOLD = Decimal("5000000")
STAMP_DUTY_AMOUNT = Decimal("10000.00")


def to_decimal(value, field="value"):
    """Mengonversi angka (int, str, Decimal, float) ke Decimal tanpa lewat representasi biner."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} harus berupa angka", field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} harus berupa angka", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} harus berupa angka", field=field)
    return result


def quantize_money(value, field="value"):
    return to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_line_inputs(quantity, unit_price=None, discount=0):
    """
    Membulatkan quantity, unit_price, dan discount ke 2 desimal (skala kolom
    penyimpanannya) lalu memeriksa rentangnya. unit_price boleh None bila
    harganya nanti diambil dari katalog.
    """
    quantity = quantize_money(quantity, "quantity")
    discount = quantize_money(discount, "discount")
    if unit_price is not None:
        unit_price = quantize_money(unit_price, "unit_price")

    if quantity <= 0:
        raise ValidationError("quantity harus lebih besar dari 0", field="quantity")
    if unit_price is not None and unit_price <= 0:
        raise ValidationError("unit_price harus lebih besar dari 0", field="unit_price")
    if discount < 0 or discount > HUNDRED:
        raise ValidationError("discount harus di antara 0 dan 100", field="discount")
    return quantity, unit_price, discount


def compute_line_total(quantity, unit_price, discount=0):
    """Kontribusi satu baris: quantity * unit_price * (1 - discount/100)."""
    if unit_price is None:
        raise ValidationError("unit_price harus berupa angka", field="unit_price")
    quantity, unit_price, discount = validate_line_inputs(quantity, unit_price, discount)
    return quantize_money(quantity * unit_price * (1 - discount / HUNDRED))


def sum_line_totals(line_totals):
    subtotal = ZERO
    for line_total in line_totals:
        subtotal += quantize_money(line_total)
    return subtotal


@dataclass(frozen=True)
class TaxFlags:
    vat_enabled: bool = True
    local_tax_enabled: bool = True
    pph22_enabled: bool = True
    pph23_enabled: bool = False

    @classmethod
    def from_transaction(cls, transaction):
        return cls(
            vat_enabled=bool(transaction.vat_enabled),
            local_tax_enabled=bool(transaction.local_tax_enabled),
            pph22_enabled=bool(transaction.pph22_enabled),
            pph23_enabled=bool(transaction.pph23_enabled),
        )


@dataclass(frozen=True)
class TaxTotals:
    """Kelompok field turunan transaksi; selalu ditulis bersama-sama."""
    subtotal: Decimal
    vat_amount: Decimal
    local_tax_amount: Decimal
    pph22_amount: Decimal
    pph23_amount: Decimal
    stamp_duty_required: bool
    stamp_duty_amount: Decimal
    total_amount: Decimal

    @property
    def total_before_stamp_duty(self):
        return self.total_amount - self.stamp_duty_amount

    def as_dict(self):
        return asdict(self)


EMPTY_TOTALS = TaxTotals(
    subtotal=ZERO,
    vat_amount=ZERO,
    local_tax_amount=ZERO,
    pph22_amount=ZERO,
    pph23_amount=ZERO,
    stamp_duty_required=False,
    stamp_duty_amount=ZERO,
    total_amount=ZERO,
)


def _rate_of(base, rate, enabled):
    if not enabled:
        return ZERO
    return quantize_money(base * rate)


def compute_taxes(subtotal, service_value, flags):
    """
    Menghitung semua pajak dari subtotal.

    PPh23 hanya dikenakan bila flag-nya aktif dan service_value terisi.
    PPh22/PPh23 ikut dijumlahkan ke total, sama seperti PPN dan pajak daerah.
    service_value tidak termasuk dasar perhitungan bea meterai.
    """
    subtotal = quantize_money(subtotal)
    service_value = None if service_value is None else quantize_money(service_value)

    vat_amount = _rate_of(subtotal, VAT_RATE, flags.vat_enabled)
    local_tax_amount = _rate_of(subtotal, LOCAL_TAX_RATE, flags.local_tax_enabled)
    pph22_amount = _rate_of(subtotal, PPH22_RATE, flags.pph22_enabled)
    pph23_amount = ZERO
    if service_value is not None:
        pph23_amount = _rate_of(service_value, PPH23_RATE, flags.pph23_enabled)

    total_before_stamp_duty = subtotal + vat_amount + local_tax_amount + pph22_amount + pph23_amount
    stamp_duty_required = total_before_stamp_duty >= STAMP_DUTY_THRESHOLD
    stamp_duty_amount = STAMP_DUTY_AMOUNT if stamp_duty_required else ZERO

    return TaxTotals(
        subtotal=subtotal,
        vat_amount=vat_amount,
        local_tax_amount=local_tax_amount,
        pph22_amount=pph22_amount,
        pph23_amount=pph23_amount,
        stamp_duty_required=stamp_duty_required,
        stamp_duty_amount=stamp_duty_amount,
        total_amount=total_before_stamp_duty + stamp_duty_amount,
    )


def recalculate_totals(line_totals, service_value, flags):
    """Satu-satunya jalur hitung ulang, dipakai oleh tambah maupun hapus item.

    Tanpa item, semua field turunan nol, termasuk PPh23 dari service_value.
    """
    line_totals = list(line_totals)
    if not line_totals:
        return EMPTY_TOTALS
    return compute_taxes(sum_line_totals(line_totals), service_value, flags)
