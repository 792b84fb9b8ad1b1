from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from services.exceptions import ValidationError


def one_decimal(value):
    """Round a percentage the way the screens display it (one decimal place)."""
    return float(f"{value:.1f}")


def percentage(part, whole):
    if not whole:
        return 0.0
    return one_decimal(float(part) / float(whole) * 100)


def parse_date(value, field="date", required=True):
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD", field=field)


def parse_amount(value, field="amount"):
    """Parse a money value; it must be a number greater than zero."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}", field=field)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field} must be greater than 0", field=field)
    return amount.quantize(Decimal("0.01"))


def money(value):
    if value is None:
        return 0.0
    return float(value)


TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def parse_flag(value, field):
    """Read a yes/no value from JSON or a form; anything unrecognised is rejected."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in TRUE_WORDS:
        return True
    if text in FALSE_WORDS:
        return False
    raise ValidationError(f"{field} must be true or false", field=field)
