"""Unit tests for export errors and cancellation."""

import pytest

from xpstate_cli.export import (
    ArchiveError,
    CancelToken,
    DiscoveryError,
    ExportCancelled,
    ExportError,
    FetchError,
    PersistError,
    ResolutionError,
    SummaryError,
)


class TestExportErrors:
    """Tests for the error hierarchy."""

    @pytest.mark.parametrize(
        "cls,stage",
        [
            (DiscoveryError, "discovery"),
            (ResolutionError, "resolution"),
            (FetchError, "fetch"),
            (PersistError, "persist"),
            (SummaryError, "summary"),
            (ArchiveError, "archive"),
        ],
    )
    def test_stage_defaults(self, cls, stage):
        error = cls(message="boom")
        assert isinstance(error, ExportError)
        assert error.stage == stage
        assert error.describe() == f"{stage} failed: boom"

    def test_str_is_message(self):
        error = FetchError(message="cannot list widgets", data={"resource": "widgets"})
        assert str(error) == "cannot list widgets"
        assert error.data == {"resource": "widgets"}

    def test_default_data_not_shared(self):
        first = PersistError(message="a")
        first.data["x"] = 1
        assert PersistError(message="b").data == {}


class TestCancelToken:
    """Tests for CancelToken."""

    def test_not_cancelled(self):
        token = CancelToken()
        assert token.cancelled is False
        token.raise_if_cancelled("fetch")

    def test_cancelled(self):
        token = CancelToken()
        token.cancel()

        with pytest.raises(ExportCancelled) as exc_info:
            token.raise_if_cancelled("fetch")

        assert token.cancelled is True
        assert exc_info.value.stage == "fetch"
        assert "cancelled during fetch" in str(exc_info.value)
