"""Content-Disposition values for downloads."""

from thesis_support.api.v1.endpoints.files import content_disposition


def test_ascii_name_has_no_extended_parameter() -> None:
    assert content_disposition("notes.txt") == 'attachment; filename="notes.txt"'


def test_non_ascii_name_is_latin1_encodable() -> None:
    value = content_disposition("Глава 1.pdf")
    value.encode("latin-1")
    assert 'filename="_____ 1.pdf"' in value
    assert value.endswith("filename*=UTF-8''%D0%93%D0%BB%D0%B0%D0%B2%D0%B0%201.pdf")


def test_quotes_and_backslashes_escaped() -> None:
    value = content_disposition('a"b\\c.txt')
    assert value.startswith('attachment; filename="a\\"b\\\\c.txt"')
    assert "filename*=UTF-8''a%22b%5Cc.txt" in value
