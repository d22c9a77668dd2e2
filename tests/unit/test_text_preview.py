from services.text_preview import FAILED_PREVIEW, NO_TEXT_PREVIEW, extract_text_preview


class TestExtractTextPreview:
    def test_printable_text_is_truncated(self) -> None:
        data = b"%PDF-1.7 " + b"A" * 500

        preview = extract_text_preview(data)

        assert preview == ("%PDF-1.7 " + "A" * 191) + "..."
        assert len(preview) == 203

    def test_strips_non_printable(self) -> None:
        preview = extract_text_preview(b"\x00\x01Hello\nPDF\tWorld!\xff\xfe")

        assert preview == "HelloPDFWorld!..."

    def test_only_reads_first_kilobyte(self) -> None:
        data = b"\x00" * 1000 + b"visible text after the sample"

        assert extract_text_preview(data) == NO_TEXT_PREVIEW

    def test_short_text_uses_fallback(self) -> None:
        assert extract_text_preview(b"%PDF-1.4") == NO_TEXT_PREVIEW

    def test_empty_input(self) -> None:
        assert extract_text_preview(b"") == NO_TEXT_PREVIEW

    def test_never_raises(self) -> None:
        assert extract_text_preview(None) == FAILED_PREVIEW
