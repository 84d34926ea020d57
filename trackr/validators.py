"""
Input validation functions for API and service parameters.

All validators raise ValidationError on invalid input. Every message can
reach the dashboard user, so all of them are in Portuguese.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Tuple

from trackr.config import config
from trackr.exceptions import ValidationError
from trackr.filters import VALID_PERIODS, PERIOD_ALIASES
from trackr.models import DiscountType

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

MAX_NAME_LENGTH = 100
MAX_CODE_LENGTH = 64

SORT_DIRECTIONS = {"asc", "desc"}


def validate_date_string(
    value: str,
    field: str = "date",
    format: str = "%Y-%m-%d"
) -> date:
    """
    Validate and parse a date string.

    Raises:
        ValidationError: If date is invalid or in wrong format
    """
    if not value:
        raise ValidationError(field, "Data é obrigatória", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Data deve ser um texto", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(field, "Formato de data inválido. Use AAAA-MM-DD", value)


def validate_date_range(
    start_date: str,
    end_date: str,
    max_days: int = config.reports.max_range_days
) -> Tuple[date, date]:
    """
    Validate a date range.

    Returns:
        Tuple of (start_date, end_date) as date objects

    Raises:
        ValidationError: If dates are invalid or range is too large
    """
    start = validate_date_string(start_date, "start_date")
    end = validate_date_string(end_date, "end_date")

    if start > end:
        raise ValidationError(
            "date_range",
            "Data inicial deve ser anterior ou igual à data final",
            f"{start_date} to {end_date}"
        )

    days_diff = (end - start).days
    if days_diff > max_days:
        raise ValidationError(
            "date_range",
            f"Período não pode exceder {max_days} dias",
            f"{days_diff} days"
        )

    return start, end


def validate_period(value: Optional[str], field: str = "period") -> Optional[str]:
    """Validate a period shortcut (today, week, month, ...)."""
    if value is None:
        return None
    normalized = PERIOD_ALIASES.get(value, value)
    if normalized not in VALID_PERIODS:
        raise ValidationError(field, f"Período inválido. Use um de: {', '.join(sorted(VALID_PERIODS))}", value)
    return normalized


def validate_page(value: int, field: str = "page") -> int:
    """Validate a 1-based page number."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Deve ser um número inteiro", value)
    if value < 1:
        raise ValidationError(field, "Deve ser no mínimo 1", value)
    return value


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: int = config.reports.max_page_size
) -> int:
    """Validate a page size / result limit."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Deve ser um número inteiro", value)
    if value < min_value or value > max_value:
        raise ValidationError(field, f"Deve estar entre {min_value} e {max_value}", value)
    return value


def validate_sort_direction(value: Optional[str], field: str = "sort_direction") -> str:
    """Validate sort direction; defaults to ascending."""
    if value is None:
        return "asc"
    normalized = value.strip().lower()
    if normalized not in SORT_DIRECTIONS:
        raise ValidationError(field, "Direção de ordenação inválida. Use 'asc' ou 'desc'", value)
    return normalized


def validate_sort_field(value: str, allowed: Iterable[str], field: str = "sort_by") -> str:
    """Validate that value is one of the sortable columns."""
    allowed = set(allowed)
    if value not in allowed:
        raise ValidationError(field, f"Campo de ordenação inválido. Use um de: {', '.join(sorted(allowed))}", value)
    return value


def validate_required(value: Any, field: str, message: str) -> str:
    """Require a non-blank string; returns it stripped."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field, message)
    return value.strip()


def validate_classification_name(value: Any, field: str = "name") -> str:
    """Validate a classification name."""
    name = validate_required(value, field, "Nome da classificação é obrigatório")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(field, f"Nome deve ter no máximo {MAX_NAME_LENGTH} caracteres", name)
    return name


def validate_color(value: Optional[str], field: str = "color") -> str:
    """Validate a #rrggbb color, defaulting to the classification default."""
    if value is None or value == "":
        return config.reports.unclassified_color
    if not isinstance(value, str) or not HEX_COLOR_RE.match(value):
        raise ValidationError(field, "Cor inválida. Use o formato #rrggbb", value)
    return value.lower()


def validate_coupon_code(value: Any, field: str = "code") -> str:
    """Validate a coupon code. Codes are stored upper-case."""
    code = validate_required(value, field, "Código do cupom é obrigatório")
    if len(code) > MAX_CODE_LENGTH or any(ch.isspace() for ch in code):
        raise ValidationError(field, "Código do cupom inválido", code)
    return code.upper()


def validate_amount(value: Any, field: str = "order_amount") -> Decimal:
    """Validate a non-negative monetary amount."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(field, "Valor inválido", value)
    if not amount.is_finite() or amount < 0:
        raise ValidationError(field, "Valor não pode ser negativo", value)
    return amount


def validate_discount(value: Any, discount_type: str, field: str = "discount_value") -> Decimal:
    """Validate a discount amount for its type."""
    try:
        kind = DiscountType(discount_type)
    except ValueError:
        raise ValidationError("discount_type", "Tipo de desconto inválido. Use 'percentage' ou 'absolute'", discount_type)

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(field, "Desconto inválido", value)

    if not amount.is_finite() or amount < 0:
        raise ValidationError(field, "Desconto deve ser positivo", value)
    if kind is DiscountType.PERCENTAGE and amount > 100:
        raise ValidationError(field, "Desconto percentual deve ser no máximo 100", value)
    return amount
