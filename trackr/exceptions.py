"""
Custom exception hierarchy for TrackrCommerce.

Exception Hierarchy:
    TrackrError (base)
    ├── StoreError               - Record store failures
    │   ├── StoreUnavailableError  - Store not configured / not connected
    │   └── StoreQueryError        - A read or write was rejected
    ├── NotFoundError            - Referenced row does not exist
    └── PermissionDeniedError    - Caller may not access the brand

    ValidationError              - Input validation failed
    ConfigurationError           - Required configuration missing
"""
from typing import Any, Optional


class TrackrError(Exception):
    """Base exception for all TrackrCommerce errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StoreError(TrackrError):
    """Base class for record store failures."""


class StoreUnavailableError(StoreError):
    """
    Record store is not configured or cannot be opened.

    Always carries the fixed sentinel message so it can be localized.
    """

    SENTINEL = "Record store not configured"

    def __init__(self, details: str = None):
        super().__init__(self.SENTINEL, details)


class StoreQueryError(StoreError):
    """
    A query against the record store failed.

    `relation` names the logical table involved (conversions, coupons, ...).
    """

    def __init__(self, message: str, details: str = None, relation: str = None):
        super().__init__(message, details)
        self.relation = relation


class NotFoundError(TrackrError):
    """A brand, coupon or classification referenced by id does not exist."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message, details)


class PermissionDeniedError(TrackrError):
    """Caller's role or ownership does not allow the requested action."""

    def __init__(self, message: str = "Access denied", details: str = None, role: str = None):
        super().__init__(message, details)
        self.role = role


class ValidationError(Exception):
    """
    Input validation failed.

    Raised before any write is attempted, so a failed validation never
    leaves partial state behind.
    """

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# DISPLAY MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

UNKNOWN_ERROR_MESSAGE = "Erro desconhecido. Por favor, tente novamente."

ERROR_MESSAGES = {
    StoreUnavailableError.SENTINEL: "Banco de dados não está configurado",
    "Access denied": "Acesso negado. Este painel é apenas para administradores da marca.",
    "Brand not found": "Marca não encontrada",
    "Coupon not found": "Cupom não encontrado",
    "Classification not found": "Classificação não encontrada",
    "Duplicate coupon code": "Já existe um cupom com este código",
    "Query failed": "Falha ao consultar os dados",
    "Query timed out": "A consulta demorou demais. Tente um período menor.",
}


def get_error_message(error: Optional[Any]) -> str:
    """
    Translate an error (exception or raw message) into display text.

    Validation errors carry their own user-facing message. Known backend
    messages are looked up in ERROR_MESSAGES; anything else collapses into
    the generic retry message.
    """
    if error is None:
        return UNKNOWN_ERROR_MESSAGE

    if isinstance(error, ValidationError):
        return error.message

    if isinstance(error, TrackrError):
        key = error.message
    else:
        key = str(error)

    return ERROR_MESSAGES.get(key, UNKNOWN_ERROR_MESSAGE)
