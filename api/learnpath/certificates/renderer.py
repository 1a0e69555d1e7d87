"""PDF certificate rendering with reportlab.

Rendering is deterministic apart from the output file name, so a lost
artifact can be rendered again from the stored certificate fields.
"""

from datetime import date
from pathlib import Path
from uuid import uuid4

import structlog
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas


logger = structlog.get_logger(__name__)


class CertificateRenderer:
    """Renders certificates into a local directory.

    The returned artifact location is the file path as a string; callers
    treat it as opaque and hand it back to ``resolve``.
    """

    def __init__(self, output_dir: Path | str, issuer: str = "LearnPath LMS"):
        self.output_dir = Path(output_dir)
        self.issuer = issuer

    def render(
        self,
        student_name: str,
        course_title: str,
        issued_on: date,
        location: str | None = None,
    ) -> str:
        """Render a landscape A4 certificate and return its location.

        A new file is created unless ``location`` names an existing artifact
        reference to rebuild.
        """
        if location is not None:
            path = Path(location)
        else:
            path = self.output_dir / f"certificate_{uuid4().hex}.pdf"
        path.parent.mkdir(parents=True, exist_ok=True)

        width, height = landscape(A4)
        pdf = canvas.Canvas(str(path), pagesize=(width, height))
        pdf.setTitle(f"Certificate - {course_title}")

        pdf.setStrokeColorRGB(0.1, 0.2, 0.4)
        pdf.setLineWidth(5)
        pdf.rect(40, 40, width - 80, height - 80)

        pdf.setFont("Helvetica-Bold", 34)
        pdf.drawCentredString(width / 2, height - 130, "Certificate of Completion")

        pdf.setFont("Helvetica", 20)
        pdf.drawCentredString(width / 2, height - 200, "This is to certify that")

        pdf.setFillColorRGB(0.1, 0.3, 0.8)
        pdf.setFont("Helvetica-Bold", 28)
        pdf.drawCentredString(width / 2, height - 250, student_name)

        pdf.setFillColorRGB(0, 0, 0)
        pdf.setFont("Helvetica", 18)
        pdf.drawCentredString(
            width / 2, height - 300, "has successfully completed the course"
        )

        pdf.setFillColorRGB(0.1, 0.5, 0.2)
        pdf.setFont("Helvetica-Bold", 24)
        pdf.drawCentredString(width / 2, height - 350, course_title)

        pdf.setFillColorRGB(0, 0, 0)
        pdf.setFont("Helvetica", 16)
        pdf.drawCentredString(
            width / 2, height - 430, f"Completion Date: {issued_on:%B %d, %Y}"
        )
        pdf.setFont("Helvetica", 14)
        pdf.drawCentredString(width / 2, height - 470, self.issuer)

        pdf.showPage()
        pdf.save()

        logger.info("certificate_rendered", location=str(path))
        return str(path)

    def resolve(self, location: str) -> Path | None:
        """Return the file for an artifact location, or None if it is gone."""
        path = Path(location)
        return path if path.is_file() else None

    def discard(self, location: str) -> None:
        """Delete an artifact that was rendered but never recorded."""
        Path(location).unlink(missing_ok=True)
        logger.info("certificate_artifact_discarded", location=location)
