"""Tests for the catalog, enrollment and user directory collaborators."""

from uuid import uuid4

import pytest

from learnpath.auth.permissions import UserRole
from learnpath.catalog.service import CatalogService, DuplicateChapterOrderError


class TestCatalogService:
    """Tests for CatalogService."""

    @pytest.mark.asyncio
    async def test_chapters_sorted_by_order(
        self, catalog: CatalogService, course
    ) -> None:
        await catalog.add_chapter(course.id, "Third", 3)
        await catalog.add_chapter(course.id, "First", 1)
        await catalog.add_chapter(course.id, "Second", 2)

        chapters = await catalog.list_chapters(course.id)

        assert [c.order for c in chapters] == [1, 2, 3]
        assert [c.title for c in chapters] == ["First", "Second", "Third"]
        assert all(c.course_id == course.id for c in chapters)

    @pytest.mark.asyncio
    async def test_duplicate_order_rejected(
        self, catalog: CatalogService, course
    ) -> None:
        await catalog.add_chapter(course.id, "Intro", 1)

        with pytest.raises(DuplicateChapterOrderError):
            await catalog.add_chapter(course.id, "Also intro", 1)

    @pytest.mark.asyncio
    async def test_order_must_be_positive(
        self, catalog: CatalogService, course
    ) -> None:
        with pytest.raises(ValueError):
            await catalog.add_chapter(course.id, "Zero", 0)

    @pytest.mark.asyncio
    async def test_get_course(self, catalog: CatalogService, course, mentor) -> None:
        found = await catalog.get_course(course.id)
        assert found.title == "Pharmacology Basics"
        assert found.mentor_id == mentor.id
        assert await catalog.get_course(uuid4()) is None

    @pytest.mark.asyncio
    async def test_mentor_courses(self, catalog: CatalogService, course, mentor) -> None:
        courses = await catalog.list_mentor_courses(mentor.id)
        assert [c.id for c in courses] == [course.id]


class TestEnrollmentService:
    """Tests for EnrollmentService."""

    @pytest.mark.asyncio
    async def test_enroll_and_check(self, enrollments, student, course) -> None:
        assert await enrollments.is_enrolled(student.id, course.id) is False

        await enrollments.enroll(student.id, course.id)

        assert await enrollments.is_enrolled(student.id, course.id) is True

    @pytest.mark.asyncio
    async def test_enroll_twice_keeps_first(
        self, enrollments, mentor, student, course
    ) -> None:
        first = await enrollments.enroll(student.id, course.id, enrolled_by=mentor.id)
        second = await enrollments.enroll(student.id, course.id)

        assert second.enrolled_by == mentor.id
        assert second.enrolled_at == first.enrolled_at
        assert len(await enrollments.list_course_students(course.id)) == 1


class TestUserDirectory:
    """Tests for UserDirectory."""

    @pytest.mark.asyncio
    async def test_register_and_get(self, users) -> None:
        user = await users.register_user("m@example.com", "Mia", UserRole.MENTOR)

        found = await users.get_user(user.id)

        assert found.name == "Mia"
        assert found.role == "mentor"
        assert found.is_student is False
        assert await users.get_user(uuid4()) is None
