from io import BytesIO

import matplotlib.figure
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.patches import Rectangle

from academy.core.ports.renderer import CertificateLayout

# A4 landscape, inches
PAGE_WIDTH = 11.69
PAGE_HEIGHT = 8.27


class MatplotlibCertificateRenderer:
    def __init__(self, dpi: int = 100, font_family: str = "DejaVu Sans"):
        self.dpi = dpi
        self.font_family = font_family

    def _border(self, fig: matplotlib.figure.Figure, layout: CertificateLayout) -> None:
        fig.patches.append(
            Rectangle(
                (0.02, 0.03), 0.96, 0.94,
                transform=fig.transFigure, fill=False,
                edgecolor=layout.primary_color, linewidth=6,
            )
        )
        fig.patches.append(
            Rectangle(
                (0.035, 0.05), 0.93, 0.90,
                transform=fig.transFigure, fill=False,
                edgecolor=layout.secondary_color, linewidth=1.5,
            )
        )
        # Accent band under the heading
        fig.patches.append(
            Rectangle(
                (0.38, 0.655), 0.24, 0.006,
                transform=fig.transFigure, fill=True,
                facecolor=layout.secondary_color, edgecolor="none",
            )
        )

    def render_pdf(self, layout: CertificateLayout) -> bytes:
        fig = matplotlib.figure.Figure(figsize=(PAGE_WIDTH, PAGE_HEIGHT), dpi=self.dpi)
        FigureCanvasAgg(fig)
        fig.patch.set_facecolor("white")
        self._border(fig, layout)

        family = self.font_family
        text = fig.text

        text(0.5, 0.88, layout.brand_name.upper(), ha="center", fontsize=16,
             color=layout.primary_color, fontweight="bold", family=family)
        text(0.5, 0.76, "CERTIFICATE", ha="center", fontsize=40,
             color="#111827", fontweight="bold", family=family)
        text(0.5, 0.69, "OF COMPLETION", ha="center", fontsize=16,
             color=layout.primary_color, family=family)

        text(0.5, 0.59, "This is to certify that", ha="center", fontsize=13,
             color="#4B5563", family=family)
        text(0.5, 0.50, layout.recipient_name, ha="center", fontsize=32,
             color=layout.primary_color, fontweight="bold", family=family)
        text(0.5, 0.42, f"has successfully completed the {layout.type_label}", ha="center",
             fontsize=13, color="#4B5563", family=family)
        text(0.5, 0.35, layout.title, ha="center", fontsize=20, color="#111827",
             fontweight="bold", family=family, wrap=True)

        issued = layout.issued_at.strftime("%d %B %Y")
        text(0.12, 0.18, issued, ha="left", fontsize=12, color="#111827", family=family)
        text(0.12, 0.145, "Date of Issue", ha="left", fontsize=10, color="#6B7280", family=family)

        text(0.88, 0.18, layout.issuer_name, ha="right", fontsize=12, color="#111827",
             fontweight="bold", family=family)
        text(0.88, 0.145, layout.issuer_title, ha="right", fontsize=10, color="#6B7280",
             family=family)

        text(0.5, 0.18, f"Certificate No: {layout.certificate_no}", ha="center", fontsize=10,
             color="#374151", family=family)
        if layout.verify_url:
            text(0.5, 0.145, f"Verify at {layout.verify_url}", ha="center", fontsize=8,
                 color="#6B7280", family=family)
        if layout.footer_text:
            text(0.5, 0.08, layout.footer_text, ha="center", fontsize=9, color="#6B7280",
                 family=family, style="italic")

        buf = BytesIO()
        fig.savefig(buf, format="pdf")
        pdf_data = buf.getvalue()
        buf.close()
        return pdf_data
