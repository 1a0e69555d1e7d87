"""Course enrollment lookups."""

from .models import ENROLLMENT_TABLES_CQL, Enrollment


__all__ = ["ENROLLMENT_TABLES_CQL", "Enrollment"]
