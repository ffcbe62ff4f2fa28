from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class CertificateLayout:
    """Everything printed on a certificate page."""

    brand_name: str
    recipient_name: str
    type_label: str
    title: str
    certificate_no: str
    issued_at: datetime
    issuer_name: str
    issuer_title: str
    primary_color: str
    secondary_color: str
    footer_text: str | None = None
    verify_url: str | None = None


class CertificateRendererPort(Protocol):
    def render_pdf(self, layout: CertificateLayout) -> bytes:
        """Render a certificate layout to PDF bytes."""
        ...
