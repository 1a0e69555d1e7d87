"""Course catalog: courses and their ordered chapters."""

from .models import CATALOG_TABLES_CQL, Chapter, Course


__all__ = ["CATALOG_TABLES_CQL", "Chapter", "Course"]
