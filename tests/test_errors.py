"""Tests for tabby._errors."""

import pytest

from tabby._errors import (
    ConfigError,
    ContentError,
    ExportError,
    FrontMatterError,
    ReactiveError,
    TabbyError,
    TemplateMissingError,
    WatchError,
)

_ALL = (
    ConfigError,
    ContentError,
    ExportError,
    FrontMatterError,
    ReactiveError,
    TemplateMissingError,
    WatchError,
)


class TestErrorHierarchy:
    """All tabby errors inherit from TabbyError."""

    def test_tabby_error_is_exception(self) -> None:
        assert issubclass(TabbyError, Exception)

    @pytest.mark.parametrize("error_cls", _ALL)
    def test_inherits_from_base(self, error_cls: type[TabbyError]) -> None:
        assert issubclass(error_cls, TabbyError)

    def test_front_matter_error_is_content_error(self) -> None:
        assert issubclass(FrontMatterError, ContentError)

    def test_template_missing_is_export_error(self) -> None:
        assert issubclass(TemplateMissingError, ExportError)

    def test_catch_all_tabby_errors(self) -> None:
        """All specific errors are catchable via TabbyError."""
        for error_cls in _ALL:
            with pytest.raises(TabbyError):
                raise error_cls("test")


class TestExitCodes:
    """Each error kind maps to its own exit status."""

    def test_base_exit_code(self) -> None:
        assert TabbyError.exit_code == 1

    def test_kinds_are_distinguishable(self) -> None:
        codes = {
            ConfigError.exit_code,
            ContentError.exit_code,
            ExportError.exit_code,
            TemplateMissingError.exit_code,
            WatchError.exit_code,
            ReactiveError.exit_code,
        }
        assert len(codes) == 6
        assert TabbyError.exit_code not in codes

    def test_instance_exposes_exit_code(self) -> None:
        assert TemplateMissingError("x").exit_code == 4
