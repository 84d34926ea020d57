"""
Tests for trackr.exceptions module.
"""
import pytest

from trackr.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    StoreQueryError,
    StoreUnavailableError,
    TrackrError,
    UNKNOWN_ERROR_MESSAGE,
    ValidationError,
    get_error_message,
)


class TestTrackrError:
    """Tests for base TrackrError exception."""

    def test_message_only(self):
        error = TrackrError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details is None

    def test_message_with_details(self):
        error = TrackrError("Query failed", "table missing")
        assert str(error) == "Query failed: table missing"


class TestStoreErrors:
    """Tests for the store error branch."""

    def test_unavailable_uses_sentinel(self):
        error = StoreUnavailableError("no path")
        assert isinstance(error, StoreError)
        assert error.message == StoreUnavailableError.SENTINEL

    def test_query_error_relation(self):
        error = StoreQueryError("Query failed", "syntax", relation="coupons")
        assert isinstance(error, TrackrError)
        assert error.relation == "coupons"

    def test_permission_denied_defaults(self):
        error = PermissionDeniedError(role="influencer")
        assert error.message == "Access denied"
        assert error.role == "influencer"


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_not_a_trackr_error(self):
        assert not isinstance(ValidationError("f", "m"), TrackrError)

    def test_str_with_value(self):
        error = ValidationError("limit", "Must be between 1 and 100", 500)
        assert str(error) == "limit: Must be between 1 and 100 (got: 500)"


class TestGetErrorMessage:
    """Tests for get_error_message function."""

    def test_sentinel(self):
        assert get_error_message(StoreUnavailableError()) == "Banco de dados não está configurado"

    def test_known_backend_message(self):
        assert get_error_message(StoreQueryError("Query failed", "boom")) == "Falha ao consultar os dados"
        assert get_error_message(NotFoundError("Coupon not found", "c1")) == "Cupom não encontrado"

    def test_raw_string(self):
        assert get_error_message("Access denied").startswith("Acesso negado")

    def test_validation_message_passthrough(self):
        error = ValidationError("name", "Nome da classificação é obrigatório")
        assert get_error_message(error) == "Nome da classificação é obrigatório"

    @pytest.mark.parametrize("error", [None, RuntimeError("kaboom"), TrackrError("Nobody knows")])
    def test_fallback(self, error):
        assert get_error_message(error) == UNKNOWN_ERROR_MESSAGE
