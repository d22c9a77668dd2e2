import pytest

from common.exceptions import (
    InvalidFileException,
    MissingFieldException,
    PayloadTooLargeException,
    ValidationException,
)
from common.validation import (
    MB,
    format_megabytes,
    parse_tags,
    require_fields,
    validate_declared_size,
    validate_direct_upload_size,
    validate_pdf_content_type,
)


class TestRequireFields:
    def test_lists_missing_in_order(self) -> None:
        with pytest.raises(MissingFieldException) as exc_info:
            require_fields(filename="", size=None)

        assert exc_info.value.context == {"fields": ["filename", "size"]}

    def test_passes_when_present(self) -> None:
        require_fields(filename="a.pdf", size=1)


class TestSizes:
    def test_format_megabytes(self) -> None:
        assert format_megabytes(95 * MB) == "95MB"
        assert format_megabytes(MB + MB // 2) == "1.5MB"

    def test_declared_size_ceiling(self) -> None:
        assert validate_declared_size(200 * MB, 200 * MB) == 200 * MB
        with pytest.raises(PayloadTooLargeException):
            validate_declared_size(200 * MB + 1, 200 * MB)

    def test_negative_declared_size(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_declared_size(-1, 200 * MB)

        assert exc_info.value.status_code == 400

    def test_direct_upload_message(self) -> None:
        with pytest.raises(PayloadTooLargeException) as exc_info:
            validate_direct_upload_size(96 * MB, 95 * MB)

        assert exc_info.value.detail == (
            "Files larger than 95MB must use the presigned upload method. Use /upload/request instead."
        )


class TestContentType:
    def test_accepts_pdf(self) -> None:
        validate_pdf_content_type("application/pdf")

    @pytest.mark.parametrize("content_type", [None, "", "text/plain", "application/octet-stream"])
    def test_rejects_others(self, content_type) -> None:
        with pytest.raises(InvalidFileException):
            validate_pdf_content_type(content_type)


class TestParseTags:
    def test_comma_string(self) -> None:
        assert parse_tags(" a, b ,,c ") == ["a", "b", "c"]

    def test_list(self) -> None:
        assert parse_tags(["a", " ", "b "]) == ["a", "b"]

    def test_empty(self) -> None:
        assert parse_tags(None) == []
        assert parse_tags("") == []
