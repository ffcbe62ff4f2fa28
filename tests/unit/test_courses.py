import pytest

from academy.components.courses import (
    ChapterInput,
    SessionInput,
    clamp_progress,
    completion_percent,
    is_chapter_complete,
    validate_counts,
)


def _curriculum(services, course, chapters=2, draft=True):
    """One published session with published chapters, plus an unpublished one."""
    session, errors = services.courses.create_session(
        str(course.id), SessionInput(title="Foundations", is_published=True)
    )
    assert errors == []
    published = []
    for n in range(1, chapters + 1):
        chapter, errors = services.courses.create_chapter(
            session.id,
            ChapterInput(
                title=f"Lesson {n}",
                video_url=f"https://videos.test/{n}",
                video_duration=600,
                is_published=True,
                is_free_preview=n == 1,
            ),
        )
        assert errors == []
        published.append(chapter)
    if draft:
        services.courses.create_chapter(
            session.id, ChapterInput(title="Coming Soon", video_url="https://videos.test/x")
        )
    return session, published


@pytest.mark.parametrize(
    "completed,total,expected", [(0, 0, 0), (1, 3, 33), (2, 3, 67), (1, 2, 50), (3, 3, 100)]
)
def test_completion_percent(completed, total, expected):
    assert completion_percent(completed, total) == expected


def test_chapter_completion_rules():
    assert clamp_progress(150) == 100
    assert clamp_progress(-5) == 0
    assert is_chapter_complete(90, False, 90)
    assert not is_chapter_complete(89, False, 90)
    assert is_chapter_complete(10, True, 90)
    assert [e.code for e in validate_counts({"position": -1, "video_duration": True})] == [
        "invalid_position",
        "invalid_video_duration",
    ]


def test_sessions_and_chapters_append_in_order(services, new_item):
    course = new_item()
    first, _ = services.courses.create_session(str(course.id), SessionInput(title="One"))
    second, _ = services.courses.create_session(str(course.id), SessionInput(title="Two"))
    assert (first.position, second.position) == (1, 2)

    a, _ = services.courses.create_chapter(first.id, ChapterInput(title="Intro", video_url="v1"))
    b, _ = services.courses.create_chapter(first.id, ChapterInput(title="Setup", video_url="v2"))
    assert (a.position, b.position) == (1, 2)
    assert a.slug == "intro"
    assert first.is_published is False


def test_session_needs_a_course_and_title(services, new_item):
    ebook = new_item("EBOOK", "Not A Course")
    _, errors = services.courses.create_session(str(ebook.id), SessionInput(title="X"))
    assert [e.code for e in errors] == ["course_not_found"]
    _, errors = services.courses.create_session("not-a-uuid", SessionInput(title="X"))
    assert [e.code for e in errors] == ["course_not_found"]

    _, errors = services.courses.create_session(str(new_item().id), SessionInput(title="  "))
    assert [e.code for e in errors] == ["title_required"]


def test_chapter_slugs_are_unique_within_a_course(services, new_item):
    course = new_item()
    session, (lesson, _) = _curriculum(services, course, draft=False)
    later, _ = services.courses.create_session(str(course.id), SessionInput(title="Advanced"))

    _, errors = services.courses.create_chapter(
        later.id, ChapterInput(title="Lesson 1", video_url="https://videos.test/dup")
    )
    assert [e.code for e in errors] == ["slug_taken"]

    _, errors = services.courses.update_chapter(lesson.id, {"slug": "Lesson 2"})
    assert [e.code for e in errors] == ["slug_taken"]

    other_session, _ = _curriculum(services, new_item(title="Another Course"), draft=False)
    assert other_session.course_id != session.course_id


def test_chapter_needs_a_video(services, new_item):
    session, _ = _curriculum(services, new_item(), chapters=0, draft=False)
    _, errors = services.courses.create_chapter(session.id, ChapterInput(title="Silent", video_url=""))
    assert [e.code for e in errors] == ["video_url_required"]


def test_updates_reject_nulls(services, new_item):
    session, (chapter, _) = _curriculum(services, new_item(), draft=False)

    _, errors = services.courses.update_session(session.id, {"title": None})
    assert [e.code for e in errors] == ["title_required"]
    _, errors = services.courses.update_chapter(chapter.id, {"video_url": None, "is_published": None})
    assert {e.code for e in errors} == {"video_url_required", "is_published_required"}

    renamed, errors = services.courses.update_session(
        session.id, {"title": " Basics ", "description": None}
    )
    assert errors == []
    assert renamed.title == "Basics"
    assert renamed.description is None


def test_progress_requires_enrollment(services, student, new_item):
    course = new_item()
    _, (chapter, _) = _curriculum(services, course, draft=False)
    _, errors = services.courses.record_progress(student, chapter.id, 50)
    assert [e.code for e in errors] == ["not_enrolled"]

    _, errors = services.courses.course_progress(student, str(course.id))
    assert [e.code for e in errors] == ["enrollment_not_found"]


def test_chapter_progress_completes_the_course_once(services, student, new_item):
    course = new_item(title="Futures Mastery")
    _, (first, second) = _curriculum(services, course)
    services.courses.manual_enroll(student.email, str(course.id))

    update, errors = services.courses.record_progress(student, first.id, 95)
    assert errors == []
    assert update.chapter.completed is True
    assert update.course.completed_chapters == 1
    assert update.course.total_chapters == 2
    assert update.course.percentage == 50
    assert update.course_completed is False
    assert services.certificates.mine(student) == []

    update, _ = services.courses.record_progress(student, second.id, 20, completed=True)
    assert update.course.percentage == 100
    assert update.course_completed is True
    assert update.course.completed_at == services.clock.now_utc()

    enrollment = services.checkout.my_enrollments(student)[0].enrollment
    assert enrollment.progress == 100
    assert enrollment.completed_at is not None

    again, _ = services.courses.record_progress(student, second.id, 100)
    assert again.course_completed is False
    certs = services.certificates.mine(student)
    assert len(certs) == 1
    assert certs[0].title == "Futures Mastery"


def test_completed_chapter_stays_completed(services, student, new_item):
    course = new_item()
    _, (first, _) = _curriculum(services, course)
    services.courses.manual_enroll(student.email, str(course.id))

    services.courses.record_progress(student, first.id, 100)
    update, _ = services.courses.record_progress(student, first.id, 10)
    assert update.chapter.progress == 10
    assert update.chapter.completed is True
    assert update.course.completed_chapters == 1


def test_unpublished_chapters_take_no_progress(services, student, new_item):
    course = new_item()
    session, _ = _curriculum(services, course, chapters=1, draft=False)
    draft, _ = services.courses.create_chapter(session.id, ChapterInput(title="Draft", video_url="v"))
    services.courses.manual_enroll(student.email, str(course.id))

    _, errors = services.courses.record_progress(student, draft.id, 100)
    assert [e.code for e in errors] == ["chapter_not_found"]


def test_curriculum_hides_drafts_and_locked_videos(services, student, admin, new_item):
    course = new_item()
    _, (preview, _) = _curriculum(services, course)

    public, errors = services.courses.curriculum(str(course.id))
    assert errors == []
    chapters = public.as_dict()["sessions"][0]["chapters"]
    assert [c["title"] for c in chapters] == ["Lesson 1", "Lesson 2"]
    assert [c["video_url"] for c in chapters] == [None, None]

    signed_in, _ = services.courses.curriculum(str(course.id), student)
    chapters = signed_in.as_dict()["sessions"][0]["chapters"]
    assert [c["has_access"] for c in chapters] == [True, False]
    assert chapters[0]["video_url"] == preview.video_url

    services.courses.manual_enroll(student.email, str(course.id))
    enrolled, _ = services.courses.curriculum(str(course.id), student)
    assert enrolled.is_enrolled
    assert all(c.has_access for c in enrolled.sessions[0].chapters)

    everything, _ = services.courses.curriculum(str(course.id), admin)
    assert everything.total_chapters == 3


def test_unpublished_course_is_hidden_from_students(services, student, admin, new_item):
    draft = new_item(title="Secret Course", is_published=False)
    _, errors = services.courses.curriculum(str(draft.id), student)
    assert [e.code for e in errors] == ["course_not_found"]
    found, errors = services.courses.curriculum(str(draft.id), admin)
    assert errors == [] and found.course.id == draft.id


def test_chapter_page_by_slugs(services, student, new_item):
    course = new_item()
    _curriculum(services, course)

    page, errors = services.courses.chapter_page(course.slug, "lesson-2", student)
    assert errors == []
    assert page.view.has_access is False
    assert page.as_dict()["chapter"]["video_url"] is None
    assert page.session.title == "Foundations"

    _, errors = services.courses.chapter_page(course.slug, "coming-soon", student)
    assert [e.code for e in errors] == ["chapter_not_found"]
    _, errors = services.courses.chapter_page("no-such-course", "lesson-1")
    assert [e.code for e in errors] == ["course_not_found"]


def test_manual_enroll(services, student, new_item):
    course = new_item()
    enrollment, errors = services.courses.manual_enroll(" Student@Example.com ", str(course.id))
    assert errors == []
    assert enrollment.order_id is None
    assert services.checkout.check_enrollment(student, "COURSE", str(course.id))

    _, errors = services.courses.manual_enroll(student.email, str(course.id))
    assert [e.code for e in errors] == ["enrollment_taken"]
    _, errors = services.courses.manual_enroll("nobody@example.com", str(course.id))
    assert [e.code for e in errors] == ["user_not_found"]
    _, errors = services.courses.manual_enroll(student.email, str(new_item("EBOOK", "Book").id))
    assert [e.code for e in errors] == ["course_not_found"]


def test_enrollment_listing_details_and_stats(services, student, new_user, new_item):
    course = new_item(title="Swing Trading")
    _, (first, second) = _curriculum(services, course)
    other = new_user("trader@example.com")
    for user in (student, other):
        services.courses.manual_enroll(user.email, str(course.id))
    services.courses.record_progress(student, first.id, 100)
    services.courses.record_progress(student, second.id, 100)
    services.courses.record_progress(other, first.id, 40)

    rows, total = services.courses.list_enrollments(str(course.id))
    assert total == 2
    by_email = {r.user.email: r for r in rows}
    assert by_email[student.email].progress.percentage == 100
    assert by_email[other.email].progress.completed_chapters == 0

    rows, total = services.courses.list_enrollments(search="trader@")
    assert total == 1 and rows[0].user.id == other.id

    details, errors = services.courses.enrollment_details(rows[0].enrollment.id)
    assert errors == []
    assert details.course.title == "Swing Trading"
    assert details.progress.last_watched_at is not None

    stats, total = services.courses.course_stats()
    assert total == 1
    assert stats[0].as_dict() == {
        "course_id": str(course.id),
        "title": "Swing Trading",
        "total_chapters": 2,
        "total_enrollments": 2,
        "completed_enrollments": 1,
        "in_progress_enrollments": 0,
        "average_progress": 50,
    }
