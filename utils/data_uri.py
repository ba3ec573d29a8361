"""
Helpers for the base64 data URIs the web client uploads
(contract PDFs, post screenshots).
"""

import base64
import binascii
import re
from typing import Tuple

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """
    Split a data URI into its MIME type and decoded bytes.

    Args:
        uri: 'data:<mimetype>;base64,<encoded_data>'

    Returns:
        (mime_type, raw_bytes)

    Raises:
        ValueError: if the URI is not base64 encoded or the payload is empty.
    """
    match = DATA_URI_PATTERN.match(uri.strip()) if uri else None
    if not match:
        raise ValueError("Expected a data URI in the form 'data:<mimetype>;base64,<data>'")

    payload = "".join(match.group("payload").split())
    if not payload:
        raise ValueError("Data URI has an empty payload")

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e

    return match.group("mime").lower(), raw
