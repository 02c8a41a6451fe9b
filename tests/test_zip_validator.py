"""Tests for ZIP archive validation."""

import zipfile

import pytest
from hypothesis import given
from hypothesis import strategies as st

from github_updates import zip_validator
from helpers import make_zip


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "package.zip"
    path.write_bytes(make_zip({"plugin/plugin.php": "<?php // plugin", "plugin/readme.txt": "hi"}))
    return path


def test_valid_archive_passes_both_checks(archive):
    assert zip_validator.is_valid(archive)
    assert zip_validator.is_valid(archive, zip_validator.SIGNATURE)


def test_missing_file_is_invalid(tmp_path):
    assert not zip_validator.is_valid(tmp_path / "missing.zip")
    assert not zip_validator.is_valid(tmp_path / "missing.zip", zip_validator.SIGNATURE)


def test_html_error_page_is_invalid(tmp_path):
    path = tmp_path / "error.zip"
    path.write_text("<!DOCTYPE html><html><body>Not Found</body></html>")

    assert not zip_validator.is_valid(path)
    assert not zip_validator.is_valid(path, zip_validator.SIGNATURE)


def test_truncated_archive_fails_structural_check_only(archive):
    data = archive.read_bytes()
    archive.write_bytes(data[: len(data) // 2])

    assert not zip_validator.is_valid(archive)
    assert zip_validator.is_valid(archive, zip_validator.SIGNATURE)


def test_corrupt_member_fails_structural_check(tmp_path):
    path = tmp_path / "corrupt.zip"
    with zipfile.ZipFile(path, "w", zipfile.ZIP_STORED) as zf:
        zf.writestr("a.txt", "x" * 200)
    data = bytearray(path.read_bytes())
    # Flip a byte inside the stored data so the CRC no longer matches
    offset = data.index(b"x" * 200) + 100
    data[offset] ^= 0xFF
    path.write_bytes(bytes(data))

    assert not zip_validator.is_valid(path)


@given(payload=st.binary(min_size=0, max_size=64))
def test_signature_check_matches_magic_bytes(tmp_path_factory, payload):
    """The signature check passes exactly when the file starts with PK\\x03\\x04."""
    path = tmp_path_factory.mktemp("sig") / "file.bin"
    path.write_bytes(payload)

    expected = payload[:4] == zip_validator.ZIP_SIGNATURE
    assert zip_validator.has_zip_signature(path) is expected
