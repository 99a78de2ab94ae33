"""
Ticket payload format and QR rendering.

The payload is the exact text inside the QR code:

    registrationId:<int>;eventId:<int>;userEmail:<string>;instance:<int>

Field order, key names and both delimiters are fixed; door scanners in the
field parse exactly this string, so any change here is a breaking change.
"""

import io
import re
from dataclasses import dataclass

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from app.core.config import get_settings
from app.services.errors import MalformedTicket, TicketRenderError

FIELD_SEPARATOR = ";"
KEY_SEPARATOR = ":"
FIELD_ORDER = ("registrationId", "eventId", "userEmail", "instance")

_UNSIGNED_INT = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class TicketPayload:
    registration_id: int
    event_id: int
    user_email: str
    instance: int = 0

    @classmethod
    def for_registration(cls, registration) -> "TicketPayload":
        return cls(
            registration_id=registration.id,
            event_id=registration.event_id,
            user_email=registration.user_email,
            instance=registration.instance or 0,
        )

    def encode(self) -> str:
        values = (self.registration_id, self.event_id, self.user_email, self.instance)
        return FIELD_SEPARATOR.join(
            f"{key}{KEY_SEPARATOR}{value}" for key, value in zip(FIELD_ORDER, values)
        )

    @classmethod
    def parse(cls, raw: str) -> "TicketPayload":
        """
        Parse scanned text back into a payload.

        Raises MalformedTicket for anything that is not exactly the four
        fields in order. Surrounding whitespace is ignored; nothing else is.
        """
        text = (raw or "").strip()
        if not text:
            raise MalformedTicket("Scanned code is empty")

        fields = text.split(FIELD_SEPARATOR)
        if len(fields) != len(FIELD_ORDER):
            raise MalformedTicket()

        values = []
        for expected_key, field in zip(FIELD_ORDER, fields):
            key, separator, value = field.partition(KEY_SEPARATOR)
            if separator != KEY_SEPARATOR or key != expected_key or not value:
                raise MalformedTicket()
            values.append(value)

        registration_id, event_id, user_email, instance = values
        for number in (registration_id, event_id, instance):
            if not _UNSIGNED_INT.fullmatch(number):
                raise MalformedTicket()

        return cls(
            registration_id=int(registration_id),
            event_id=int(event_id),
            user_email=user_email,
            instance=int(instance),
        )


def render_ticket_image(payload: str) -> bytes:
    """Render the payload verbatim as a QR code PNG."""
    settings = get_settings()
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=settings.QR_BOX_SIZE,
            border=settings.QR_BORDER,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except Exception as e:
        raise TicketRenderError() from e
    return buffer.getvalue()
