"""
QR code generation service
"""

import io
import secrets
from dataclasses import dataclass

import qrcode
from PIL import Image

QR_CODE_PREFIX = "WED_"

@dataclass
class QRImage:
    """Rendered QR image ready for upload/MMS attachment"""
    buffer: bytes
    mime_type: str
    extension: str

class QRService:
    """Service for generating guest QR codes"""

    # ~400px wide image with a 2-module quiet zone
    TARGET_WIDTH = 400
    BORDER = 2
    JPEG_QUALITY = 90

    @staticmethod
    def generate_qr_code() -> str:
        """Opaque bearer token for a guest's seating page"""
        # 9 random bytes -> 12 URL-safe characters
        return f"{QR_CODE_PREFIX}{secrets.token_urlsafe(9)}"

    @staticmethod
    def get_qr_url(code: str, base_url: str) -> str:
        """URL the QR code resolves to"""
        return f"{base_url.rstrip('/')}/qr/{code}"

    @staticmethod
    def generate_qr_buffer(code: str, base_url: str) -> QRImage:
        """Render the guest's QR code as a JPEG.

        The MMS gateway rejects PNG, so the image is flattened onto white
        and encoded as JPEG.
        """
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=QRService.BORDER,
        )
        qr.add_data(QRService.get_qr_url(code, base_url))
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGBA")
        img = img.resize((QRService.TARGET_WIDTH, QRService.TARGET_WIDTH), Image.NEAREST)

        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[3])

        buffer = io.BytesIO()
        background.save(buffer, format="JPEG", quality=QRService.JPEG_QUALITY)

        return QRImage(buffer=buffer.getvalue(), mime_type="image/jpeg", extension="jpg")
