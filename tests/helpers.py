"""Response and archive builders shared by the tests."""

import io
import json
import zipfile
from unittest.mock import Mock

from requests.structures import CaseInsensitiveDict

PREFIXED_TOKEN = "ghp_" + "A1b2C3d4E5" * 3 + "F6g7H8"
CLASSIC_TOKEN = "0123456789abcdef0123456789abcdef01234567"


def make_response(status=200, json_data=None, headers=None, content=b"", reason="OK"):
    """Build a Mock standing in for a requests.Response."""
    response = Mock()
    response.status_code = status
    response.reason = reason
    response.headers = CaseInsensitiveDict(headers or {})

    if json_data is not None:
        response.text = json.dumps(json_data)
        response.json.return_value = json_data
    else:
        response.text = content.decode("latin-1")
        response.json.side_effect = ValueError("No JSON object could be decoded")

    response.iter_content.return_value = [content] if content else []
    return response


def make_zip(files: dict[str, str]) -> bytes:
    """Build an in-memory ZIP archive from a name -> text mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, text in files.items():
            archive.writestr(name, text)
    return buffer.getvalue()


PLUGIN_MAIN = """<?php
/**
 * Plugin Name: My Plugin
 * Plugin URI: https://github.com/acme/my-plugin
 * Description: Does useful things.
 * Version: 1.0.0
 * Author: Acme
 * Author URI: https://acme.example
 * Requires at least: 6.0
 * Tested up to: 6.5
 * Requires PHP: 8.0
 */
"""

THEME_STYLE = """/*
Theme Name: My Theme
Theme URI: https://github.com/acme/my-theme
Description: A clean theme.
Version: 1.0.0
Author: Acme
*/
"""
