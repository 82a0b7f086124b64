"""QR payload helpers for handing a session token to students.

The payload is a small JSON document so scanners can tell an attendance code
apart from arbitrary QR content; bare tokens are accepted too.
"""
from __future__ import annotations

import io
import json
from typing import BinaryIO

import qrcode
from PIL import Image

from ..core.constants import QR_PAYLOAD_TYPE
from ..core.exceptions import InvalidTokenError, ValidationError
from ..sessions.model import Session


def build_qr_payload(session: Session) -> str:
    return json.dumps(
        {"type": QR_PAYLOAD_TYPE, "sessionId": session.session_id, "code": session.token},
        separators=(",", ":"),
    )


def parse_qr_payload(raw: str) -> str:
    """Extract the session token from a scanned payload."""
    data = (raw or "").strip()
    if not data:
        raise InvalidTokenError("QR code is empty")

    # anything that looks like JSON must be an attendance document
    if not data.startswith(("{", "[")):
        return data

    try:
        payload = json.loads(data)
    except ValueError:
        raise InvalidTokenError("QR code is not a valid attendance code")

    if not isinstance(payload, dict) or payload.get("type") != QR_PAYLOAD_TYPE:
        raise InvalidTokenError("QR code is not an attendance code")

    code = payload.get("code")
    if not isinstance(code, str) or not code.strip():
        raise InvalidTokenError("QR code carries no session code")
    return code.strip()


def render_qr_png(data: str, *, box_size: int = 10, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_Q,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_qr_image(stream: BinaryIO) -> str:
    """Read the first QR code found in an uploaded image."""
    # pyzbar loads the native zbar library on import
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except OSError:
        raise ValidationError("Uploaded file is not an image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code found in the image")
    return decoded[0].data.decode("utf-8").strip()
