"""Unit tests for portal upload validation"""

import base64

import pytest

from docrequest.domain.configs import EntityTypeConfig
from docrequest.domain.errors import UploadLimitExceededError, UploadRejectedError
from docrequest.domain.uploads import (
    IncomingFile,
    declared_size,
    decode_file,
    file_extension,
    sanitize_filename,
    validate_batch_limits,
    validate_filename,
)


@pytest.fixture
def config():
    return EntityTypeConfig(
        type_id="opportunity",
        is_active=True,
        recipient_email_path="contact.email",
        recipient_name_path=None,
        recipient_ref_path=None,
        default_expiration_days=7,
        max_file_size_bytes=100,
        max_files_per_upload=2,
        allowed_extensions=frozenset({"pdf", "jpg"}),
    )


def incoming(name="scan.pdf", content=b"%PDF-1.4 data", size=None):
    return IncomingFile(
        file_name=name,
        base64_data=base64.b64encode(content).decode("ascii"),
        content_type="application/pdf",
        size_bytes=size,
    )


class TestFileExtension:

    @pytest.mark.parametrize("name,expected", [
        ("scan.PDF", "pdf"),
        ("archive.tar.gz", "gz"),
        ("README", ""),
        ("trailing.", ""),
    ])
    def test_extension_after_last_dot(self, name, expected):
        assert file_extension(name) == expected


class TestDeclaredSize:

    def test_explicit_size_wins(self):
        assert declared_size(incoming(size=42)) == 42

    def test_derived_from_base64_length(self):
        for length in (1, 2, 3, 10, 99):
            assert declared_size(incoming(content=b"x" * length)) == length


class TestBatchLimits:

    def test_valid_batch(self, config):
        validate_batch_limits([incoming(), incoming("photo.JPG")], config)

    def test_empty_batch_rejected_generically(self, config):
        with pytest.raises(UploadRejectedError):
            validate_batch_limits([], config)

    def test_too_many_files(self, config):
        with pytest.raises(UploadLimitExceededError) as exc_info:
            validate_batch_limits([incoming()] * 3, config)
        assert exc_info.value.limit == UploadLimitExceededError.MAX_FILES

    def test_one_oversize_file_rejects_whole_batch(self, config):
        with pytest.raises(UploadLimitExceededError) as exc_info:
            validate_batch_limits([incoming(), incoming(size=101)], config)
        assert exc_info.value.limit == UploadLimitExceededError.MAX_FILE_SIZE

    def test_disallowed_extension(self, config):
        with pytest.raises(UploadLimitExceededError) as exc_info:
            validate_batch_limits([incoming("contract.docx")], config)
        assert exc_info.value.limit == UploadLimitExceededError.ALLOWED_EXTENSIONS

    def test_missing_extension(self, config):
        with pytest.raises(UploadLimitExceededError) as exc_info:
            validate_batch_limits([incoming("noextension")], config)
        assert exc_info.value.limit == UploadLimitExceededError.ALLOWED_EXTENSIONS

    def test_count_checked_before_extension(self, config):
        with pytest.raises(UploadLimitExceededError) as exc_info:
            validate_batch_limits([incoming("a.docx")] * 3, config)
        assert exc_info.value.limit == UploadLimitExceededError.MAX_FILES


class TestDecodeFile:

    def test_decodes_and_sanitizes(self, config):
        decoded = decode_file(incoming("tax return (2024).pdf"), config)
        assert decoded.content == b"%PDF-1.4 data"
        assert decoded.file_name == "tax_return_2024_.pdf"
        assert decoded.content_type == "application/pdf"

    def test_misdeclared_size_caught_after_decoding(self, config):
        lying = incoming(content=b"x" * 150, size=10)
        validate_batch_limits([lying], config)
        with pytest.raises(UploadLimitExceededError) as exc_info:
            decode_file(lying, config)
        assert exc_info.value.limit == UploadLimitExceededError.MAX_FILE_SIZE

    def test_invalid_base64(self, config):
        bad = IncomingFile(file_name="scan.pdf", base64_data="***not base64***")
        with pytest.raises(UploadRejectedError):
            decode_file(bad, config)

    def test_empty_file(self, config):
        with pytest.raises(UploadRejectedError):
            decode_file(incoming(content=b""), config)

    def test_path_traversal(self, config):
        with pytest.raises(UploadRejectedError):
            decode_file(incoming("../../etc/passwd.pdf"), config)

    def test_default_content_type(self, config):
        item = incoming()
        item.content_type = None
        assert decode_file(item, config).content_type == "application/octet-stream"


class TestFilenameHelpers:

    def test_control_characters_rejected(self):
        is_valid, error = validate_filename("bad\x00name.pdf")
        assert is_valid is False
        assert "control" in error

    def test_long_filename_rejected(self):
        is_valid, _ = validate_filename("a" * 252 + ".pdf")
        assert is_valid is False

    def test_sanitize_keeps_extension(self):
        assert sanitize_filename("my file.pdf") == "my_file.pdf"
