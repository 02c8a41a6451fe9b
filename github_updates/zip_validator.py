"""ZIP archive validation."""

import logging
import zipfile
import zlib
from pathlib import Path

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK\x03\x04"

STRUCTURAL = "structural"
SIGNATURE = "signature"


def has_zip_signature(path: str | Path) -> bool:
    """Check the first four bytes for the ZIP local-file-header signature.

    This only shows the file plausibly starts like a ZIP archive; it says
    nothing about the integrity of the rest of the file.
    """
    try:
        with open(path, "rb") as f:
            signature = f.read(4)
    except OSError as e:
        logger.warning(f"ZIP validation failed: could not open {path}: {e}")
        return False

    result = signature == ZIP_SIGNATURE
    logger.debug(
        f"ZIP validation with signature check: {'Passed' if result else 'Failed'} "
        f"(Signature: {signature.hex()}, Expected: {ZIP_SIGNATURE.hex()})"
    )
    return result


def check_structure(path: str | Path) -> bool:
    """Open the archive and verify the central directory and every CRC."""
    try:
        with zipfile.ZipFile(path) as archive:
            bad_member = archive.testzip()
            if bad_member is not None:
                logger.warning(f"ZIP validation failed: corrupt member {bad_member}")
                return False

            names = archive.namelist()
            logger.debug(f"ZIP validation passed: archive contains {len(names)} files")
            for index, name in enumerate(names[:5], start=1):
                logger.debug(f"ZIP file {index}: {name}")
            return True
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, EOFError) as e:
        logger.warning(f"ZIP validation failed: {e}")
        return False


def is_valid(path: str | Path, method: str = STRUCTURAL) -> bool:
    """Validate a downloaded archive.

    Args:
        path: Path to the file to check
        method: "structural" to open the archive and test every member,
            "signature" to only compare the leading magic bytes

    Returns:
        True if the file passes the chosen check
    """
    if not Path(path).is_file():
        logger.warning(f"ZIP validation failed: {path} does not exist")
        return False

    if method == SIGNATURE:
        return has_zip_signature(path)
    return check_structure(path)
