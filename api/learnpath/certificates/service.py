"""Certificate eligibility and issuance service layer.

Business logic for:
- Eligibility, derived from the progress snapshot and never stored
- Issuing at most one certificate per (student, course)
- Ownership-checked downloads and listing

CertificationGate reads progress; it never writes completion records.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnpath.progress.service import CourseNotFoundError

from .models import Certificate
from .schemas import CertificateResponse, EligibilityResponse


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnpath.auth.service import UserDirectory
    from learnpath.catalog.service import CatalogService
    from learnpath.progress.service import ProgressTracker

    from .renderer import CertificateRenderer

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CertificateError(Exception):
    """Base certificate error."""

    def __init__(
        self,
        message: str,
        code: str = "certificate_error",
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.extra = extra or {}
        super().__init__(message)


class CertificateNotFoundError(CertificateError):
    """Certificate, course, student or artifact not found."""

    def __init__(self, message: str = "Certificate not found"):
        super().__init__(message, "not_found")


class NotEligibleError(CertificateError):
    """Not every chapter of the course is complete."""

    def __init__(self, total_chapters: int, completed_chapters: int):
        super().__init__(
            "Complete all chapters of the course to receive a certificate",
            "not_eligible",
            extra={
                "total_chapters": total_chapters,
                "completed_chapters": completed_chapters,
            },
        )


class AlreadyIssuedError(CertificateError):
    """A certificate already exists for this student and course."""

    def __init__(self, certificate: Certificate):
        self.certificate = certificate
        super().__init__(
            "Certificate already issued for this course",
            "already_issued",
            extra={
                "certificate": CertificateResponse.from_entity(certificate).model_dump(
                    mode="json"
                )
            },
        )


class CertificateIssueError(CertificateError):
    """Rendering or storing the certificate failed."""

    def __init__(self, message: str = "Failed to issue certificate"):
        super().__init__(message, "internal")


@dataclass(frozen=True)
class CertificateDownload:
    """Resolved artifact ready to stream."""

    path: Path
    filename: str


# ==============================================================================
# Certification Gate
# ==============================================================================


class CertificationGate:
    """Service deciding eligibility and minting certificates."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        tracker: "ProgressTracker",
        catalog: "CatalogService",
        users: "UserDirectory",
        renderer: "CertificateRenderer",
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.tracker = tracker
        self.catalog = catalog
        self.users = users
        self.renderer = renderer
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_certificate = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates
            WHERE student_id = ? AND course_id = ?
        """)

        self._get_student_certificates = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates WHERE student_id = ?
        """)

        self._insert_certificate = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates
            (student_id, course_id, certificate_id, artifact_location,
             student_name, course_title, issued_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    # ==========================================================================
    # Eligibility
    # ==========================================================================

    async def check_eligibility(
        self, student_id: UUID, course_id: UUID
    ) -> EligibilityResponse:
        """Check whether every chapter of the course is complete.

        A course with no chapters is never eligible.

        Raises:
            CertificateNotFoundError: Course does not exist
        """
        try:
            snapshot = await self.tracker.get_snapshot(student_id, course_id)
        except CourseNotFoundError as e:
            raise CertificateNotFoundError("Course not found") from e

        return EligibilityResponse(
            course_id=course_id,
            eligible=snapshot.is_complete,
            total_chapters=snapshot.total_chapters,
            completed_chapters=snapshot.completed_chapters,
        )

    # ==========================================================================
    # Issuance
    # ==========================================================================

    async def get_certificate(
        self, student_id: UUID, course_id: UUID
    ) -> Certificate | None:
        """Get the certificate of a student for a course, if any."""
        result = await self.session.aexecute(
            self._get_certificate, [student_id, course_id]
        )
        row = result.one()
        return Certificate.from_row(row) if row else None

    async def issue(self, student_id: UUID, course_id: UUID) -> Certificate:
        """Issue the certificate of a student for a course.

        Eligibility is re-evaluated here, never taken from the caller. If the
        insert fails without an answer, the stored row decides the outcome.

        Raises:
            CertificateNotFoundError: Course or student does not exist
            NotEligibleError: Some chapter is still incomplete
            AlreadyIssuedError: A certificate exists (also on a lost race)
            CertificateIssueError: Rendering or persistence failed
        """
        eligibility = await self.check_eligibility(student_id, course_id)
        if not eligibility.eligible:
            raise NotEligibleError(
                eligibility.total_chapters, eligibility.completed_chapters
            )

        existing = await self.get_certificate(student_id, course_id)
        if existing is not None:
            raise AlreadyIssuedError(existing)

        student = await self.users.get_user(student_id)
        if student is None:
            raise CertificateNotFoundError("Student not found")
        course = await self.catalog.get_course(course_id)
        if course is None:
            raise CertificateNotFoundError("Course not found")

        # Narrow the window before doing the expensive part
        existing = await self.get_certificate(student_id, course_id)
        if existing is not None:
            raise AlreadyIssuedError(existing)

        issued_at = datetime.now(UTC)
        try:
            location = await asyncio.to_thread(
                self.renderer.render, student.name, course.title, issued_at.date()
            )
        except Exception as e:
            logger.exception(
                "certificate_render_failed",
                student_id=str(student_id),
                course_id=str(course_id),
            )
            raise CertificateIssueError from e

        certificate = Certificate(
            student_id=student_id,
            course_id=course_id,
            artifact_location=location,
            student_name=student.name,
            course_title=course.title,
            issued_at=issued_at,
        )

        try:
            result = await self.session.aexecute(
                self._insert_certificate,
                [
                    certificate.student_id,
                    certificate.course_id,
                    certificate.certificate_id,
                    certificate.artifact_location,
                    certificate.student_name,
                    certificate.course_title,
                    certificate.issued_at,
                ],
            )
        except Exception as e:
            certificate = await self._settle_unconfirmed_insert(certificate, e)
        else:
            if not result.was_applied:
                await self._discard_artifact(location)
                winner = await self.get_certificate(student_id, course_id)
                logger.info(
                    "certificate_issue_race_lost",
                    student_id=str(student_id),
                    course_id=str(course_id),
                )
                if winner is None:
                    raise CertificateIssueError
                raise AlreadyIssuedError(winner)

        logger.info(
            "certificate_issued",
            certificate_id=str(certificate.certificate_id),
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return certificate

    async def _settle_unconfirmed_insert(
        self, certificate: Certificate, error: Exception
    ) -> Certificate:
        """Decide the outcome of an insert that raised instead of answering.

        A failed lightweight transaction (e.g. a CAS write timeout) may still
        have been applied, so the stored row is read back. The artifact is
        only deleted once no row references it.

        Returns:
            The stored certificate when the insert did land

        Raises:
            AlreadyIssuedError: Another request's certificate was stored
            CertificateIssueError: Nothing stored, or the outcome is unknown
        """
        logger.exception(
            "certificate_persist_failed",
            student_id=str(certificate.student_id),
            course_id=str(certificate.course_id),
        )

        try:
            stored = await self.get_certificate(
                certificate.student_id, certificate.course_id
            )
        except Exception:
            # Outcome unknown; the row may reference the artifact, keep it
            logger.exception(
                "certificate_persist_readback_failed",
                student_id=str(certificate.student_id),
                course_id=str(certificate.course_id),
                location=certificate.artifact_location,
            )
            raise CertificateIssueError from error

        if stored is not None and (
            stored.artifact_location == certificate.artifact_location
        ):
            logger.info(
                "certificate_persist_confirmed",
                certificate_id=str(stored.certificate_id),
            )
            return stored

        await self._discard_artifact(certificate.artifact_location)
        if stored is not None:
            raise AlreadyIssuedError(stored) from error
        raise CertificateIssueError from error

    async def _discard_artifact(self, location: str) -> None:
        """Delete an unrecorded artifact; a failed delete only leaves a stray file."""
        try:
            await asyncio.to_thread(self.renderer.discard, location)
        except OSError:
            logger.exception("certificate_artifact_discard_failed", location=location)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_certificates(self, student_id: UUID) -> list[Certificate]:
        """List a student's certificates, newest first."""
        rows = await self.session.aexecute(
            self._get_student_certificates, [student_id]
        )
        certificates = [Certificate.from_row(row) for row in rows]
        certificates.sort(key=lambda c: c.issued_at, reverse=True)
        return certificates

    async def fetch_for_download(
        self, student_id: UUID, certificate_id: UUID
    ) -> CertificateDownload:
        """Resolve a student's own certificate to a downloadable file.

        Certificates of other students are reported as not found. A missing
        artifact is rendered again from the stored certificate fields.

        Raises:
            CertificateNotFoundError: Unknown certificate or not owned
            CertificateIssueError: The artifact could not be rendered again
        """
        certificate = next(
            (
                c
                for c in await self.list_certificates(student_id)
                if c.certificate_id == certificate_id
            ),
            None,
        )
        if certificate is None:
            raise CertificateNotFoundError

        path = self.renderer.resolve(certificate.artifact_location)
        if path is None:
            logger.warning(
                "certificate_artifact_missing",
                certificate_id=str(certificate_id),
                location=certificate.artifact_location,
            )
            path = await self._restore_artifact(certificate)

        return CertificateDownload(
            path=path, filename=f"certificate_{certificate.course_id}.pdf"
        )

    async def _restore_artifact(self, certificate: Certificate) -> Path:
        """Render a stored certificate again at its recorded location."""
        try:
            location = await asyncio.to_thread(
                self.renderer.render,
                certificate.student_name,
                certificate.course_title,
                certificate.issued_at.date(),
                certificate.artifact_location,
            )
        except Exception as e:
            logger.exception(
                "certificate_restore_failed",
                certificate_id=str(certificate.certificate_id),
            )
            raise CertificateIssueError("Failed to restore certificate") from e

        logger.info(
            "certificate_artifact_restored",
            certificate_id=str(certificate.certificate_id),
        )
        return Path(location)
