from __future__ import annotations

import io
import secrets
from typing import BinaryIO

import qrcode
from PIL import Image, UnidentifiedImageError

from ..core.constants import QR_TOKEN_BYTES
from ..core.exceptions import InvalidQRPayloadError
from .model import AttendanceSession


def generate_token() -> str:
    return secrets.token_urlsafe(QR_TOKEN_BYTES)


def legacy_payload(namespace: str, session_id: int) -> str:
    return f"{namespace}:attendance:{session_id}"


def payload_for(session: AttendanceSession, namespace: str) -> str:
    """What gets encoded in the projected QR code."""

    return session.qr_token or legacy_payload(namespace, session.session_id)


def payload_matches(session: AttendanceSession, raw_payload: str, namespace: str) -> bool:
    payload = (raw_payload or "").strip()
    if not payload:
        return False
    if session.qr_token and secrets.compare_digest(payload, session.qr_token):
        return True
    return payload == legacy_payload(namespace, session.session_id)


def render_png(payload: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    out = io.BytesIO()
    img.save(out, format="PNG")
    out.seek(0)
    return out


def decode_image(stream: BinaryIO) -> str:
    """Read the first QR code found in an uploaded picture."""

    # pyzbar loads the native zbar library at import time.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        image = Image.open(stream)
        image.load()
    except (UnidentifiedImageError, OSError):
        raise InvalidQRPayloadError("Uploaded file is not a readable image")

    decoded = pyzbar_decode(image)
    if not decoded:
        raise InvalidQRPayloadError("No QR code found in the image")
    return decoded[0].data.decode("utf-8", errors="replace")
