"""HTTP tests for /v1/progress."""

from uuid import uuid4

import pytest

from learnpath.auth.permissions import UserRole


class TestMarkCompletedEndpoint:
    """POST /v1/progress/mark-completed."""

    @pytest.mark.asyncio
    async def test_completes_and_returns_snapshot(
        self, client, auth_headers, student, course, chapters, enrolled
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(course.id), "chapter_id": str(chapters[0].id)},
            headers=auth_headers(student.id),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Chapter marked as completed"
        assert data["record"]["chapter_id"] == str(chapters[0].id)
        assert data["snapshot"]["completed_chapters"] == 1
        assert data["snapshot"]["completion_percentage"] == 50

    @pytest.mark.asyncio
    async def test_prerequisite_not_met_is_400(
        self, client, auth_headers, student, course, chapters, enrolled
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(course.id), "chapter_id": str(chapters[1].id)},
            headers=auth_headers(student.id),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "prerequisite_not_met"
        assert data["blocking_chapter"]["order"] == 1
        assert "Intro" in data["message"]
        assert data["request_id"]

    @pytest.mark.asyncio
    async def test_already_completed_is_400(
        self, client, auth_headers, tracker, student, course, chapters, enrolled
    ) -> None:
        await tracker.mark_complete(student.id, course.id, chapters[0].id)

        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(course.id), "chapter_id": str(chapters[0].id)},
            headers=auth_headers(student.id),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "already_completed"

    @pytest.mark.asyncio
    async def test_not_enrolled_is_403(
        self, client, auth_headers, student, course, chapters
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(course.id), "chapter_id": str(chapters[0].id)},
            headers=auth_headers(student.id),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_chapter_is_404(
        self, client, auth_headers, student, course, chapters, enrolled
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(course.id), "chapter_id": str(uuid4())},
            headers=auth_headers(student.id),
        )
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_invalid_body_is_422(self, client, auth_headers) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": "not-a-uuid"},
            headers=auth_headers(),
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Validation error"

    def test_mentor_cannot_use_student_route(self, client, auth_headers) -> None:
        response = client.post(
            "/v1/progress/mark-completed",
            json={"course_id": str(uuid4()), "chapter_id": str(uuid4())},
            headers=auth_headers(role=UserRole.MENTOR),
        )
        assert response.status_code == 403


class TestMarkCompletedForStudentEndpoint:
    """POST /v1/progress/mark-completed-for-student."""

    @pytest.mark.asyncio
    async def test_mentor_completes_for_student(
        self, client, auth_headers, mentor, student, course, chapters, enrolled
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed-for-student",
            json={
                "student_id": str(student.id),
                "course_id": str(course.id),
                "chapter_id": str(chapters[0].id),
            },
            headers=auth_headers(mentor.id, UserRole.MENTOR),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["record"]["completed_by"] == str(mentor.id)
        assert data["snapshot"]["student_id"] == str(student.id)

    @pytest.mark.asyncio
    async def test_foreign_mentor_is_403(
        self, client, auth_headers, student, course, chapters, enrolled
    ) -> None:
        response = client.post(
            "/v1/progress/mark-completed-for-student",
            json={
                "student_id": str(student.id),
                "course_id": str(course.id),
                "chapter_id": str(chapters[0].id),
            },
            headers=auth_headers(uuid4(), UserRole.MENTOR),
        )
        assert response.status_code == 403


class TestGetProgressEndpoint:
    """GET /v1/progress/{course_id}."""

    @pytest.mark.asyncio
    async def test_student_reads_own_progress(
        self, client, auth_headers, tracker, student, course, chapters, enrolled
    ) -> None:
        await tracker.mark_complete(student.id, course.id, chapters[0].id)

        response = client.get(
            f"/v1/progress/{course.id}", headers=auth_headers(student.id)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_chapters"] == 2
        assert data["completed_chapters"] == 1
        assert data["completion_percentage"] == 50
        assert [c["completed"] for c in data["chapters"]] == [True, False]

    @pytest.mark.asyncio
    async def test_student_cannot_read_other_student(
        self, client, auth_headers, student, other_student, course, enrolled
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}",
            params={"student_id": str(student.id)},
            headers=auth_headers(other_student.id),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_student_not_enrolled_is_403(
        self, client, auth_headers, student, course
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}", headers=auth_headers(student.id)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_course_mentor_reads_student(
        self, client, auth_headers, mentor, student, course, chapters, enrolled
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}",
            params={"student_id": str(student.id)},
            headers=auth_headers(mentor.id, UserRole.MENTOR),
        )
        assert response.status_code == 200
        assert response.json()["student_id"] == str(student.id)

    @pytest.mark.asyncio
    async def test_other_mentor_is_403(
        self, client, auth_headers, student, course, enrolled
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}",
            params={"student_id": str(student.id)},
            headers=auth_headers(uuid4(), UserRole.MENTOR),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_reads_any_student(
        self, client, auth_headers, student, course, chapters
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}",
            params={"student_id": str(student.id)},
            headers=auth_headers(role=UserRole.ADMIN),
        )
        assert response.status_code == 200
        assert response.json()["completion_percentage"] == 0

    @pytest.mark.asyncio
    async def test_admin_unknown_student_is_404(
        self, client, auth_headers, course
    ) -> None:
        response = client.get(
            f"/v1/progress/{course.id}",
            params={"student_id": str(uuid4())},
            headers=auth_headers(role=UserRole.ADMIN),
        )
        assert response.status_code == 404

    def test_unknown_course_is_404(self, client, auth_headers) -> None:
        response = client.get(f"/v1/progress/{uuid4()}", headers=auth_headers())
        assert response.status_code == 404


class TestMentorOverviewEndpoint:
    """GET /v1/progress/mentor."""

    @pytest.mark.asyncio
    async def test_lists_students(
        self, client, auth_headers, mentor, student, course, chapters, enrolled
    ) -> None:
        response = client.get(
            "/v1/progress/mentor", headers=auth_headers(mentor.id, UserRole.MENTOR)
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["student"]["name"] == "Ana Student"
        assert data[0]["progress"]["total_chapters"] == 2
        assert [c["completed"] for c in data[0]["chapters"]] == [False, False]
        assert [c["title"] for c in data[0]["chapters"]] == ["Intro", "Advanced"]

    def test_students_are_forbidden(self, client, auth_headers) -> None:
        response = client.get("/v1/progress/mentor", headers=auth_headers())
        assert response.status_code == 403
