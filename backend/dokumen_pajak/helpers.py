# backend/dokumen_pajak/helpers.py

from datetime import date, datetime

from .errors import ValidationError
from .pajak import to_decimal


def require_json(request):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Body harus berupa objek JSON")
    return data


def clean_string(value):
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def require_text(data, field):
    """Field teks wajib, tidak boleh kosong."""
    value = clean_string(data.get(field))
    if not value:
        raise ValidationError(f"{field} wajib diisi", field=field)
    return value


def optional_text(data, field):
    value = clean_string(data.get(field))
    return value or None


def parse_bool(data, field, default):
    value = data.get(field, default)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "yes", "ya"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "no", "tidak"}:
        return False
    raise ValidationError(f"{field} harus bernilai true atau false", field=field)


def parse_date(value, field):
    """Menerima date, datetime, atau string 'YYYY-MM-DD' (boleh diikuti jam ISO)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = clean_string(value)
    if not text:
        raise ValidationError(f"{field} wajib diisi", field=field)
    try:
        return datetime.strptime(text[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"Format {field} tidak valid. Gunakan format YYYY-MM-DD.", field=field)


def optional_date(value, field):
    if value is None or clean_string(value) == "":
        return None
    return parse_date(value, field)


def optional_amount(data, field):
    """Nilai uang opsional (>= 0), None bila tidak diisi."""
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} tidak boleh negatif", field=field)
    return amount


def parse_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"{field} harus berupa bilangan bulat", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} harus berupa bilangan bulat", field=field)


def format_rupiah(value):
    """Format Rupiah gaya Indonesia: 1234567.5 -> '1.234.567,50', 1000 -> '1.000'."""
    amount = to_decimal(value or 0).quantize(to_decimal("0.01"))
    whole, _, cents = "{:,.2f}".format(amount).partition(".")
    whole = whole.replace(",", ".")
    return whole if cents == "00" else f"{whole},{cents}"


def format_quantity(value):
    """2.00 -> '2', 1.50 -> '1.5', 100 -> '100'."""
    text = f"{to_decimal(value or 0):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
