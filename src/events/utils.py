import base64
import typing as t
from io import BytesIO

import orjson
import qrcode
from django.conf import settings


def render_qr_data_uri(payload: dict[str, t.Any]) -> str:
    """Render a payload as a PNG QR code and return it as a data URI.

    The payload is serialized to compact JSON so scanners can read it back.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.TICKET_QR_BOX_SIZE,
        border=4,
    )
    qr.add_data(orjson.dumps(payload).decode("utf-8"))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode("utf-8")
