COURSE = {
    "title": "Intraday Scalping",
    "short_description": "Fast setups",
    "price": 2000.0,
    "is_published": True,
}


def _course_with_chapter(api, admin):
    headers = api.headers(admin)
    course = api.client.post("/api/catalog/courses", json=COURSE, headers=headers).json()["data"]
    session = api.client.post(
        f"/api/courses/{course['id']}/sessions",
        json={"title": "Setups", "is_published": True},
        headers=headers,
    )
    assert session.status_code == 201, session.text
    chapter = api.client.post(
        f"/api/courses/sessions/{session.json()['data']['id']}/chapters",
        json={
            "title": "Opening Range",
            "video_url": "https://videos.test/orb",
            "video_duration": 900,
            "is_published": True,
        },
        headers=headers,
    )
    assert chapter.status_code == 201, chapter.text
    return course, session.json()["data"], chapter.json()["data"]


def test_curriculum_admin_routes_require_admin(api, student, admin):
    course, session, chapter = _course_with_chapter(api, admin)
    headers = api.headers(student)

    assert api.client.post(f"/api/courses/{course['id']}/sessions", json={"title": "X"}).status_code == 401
    resp = api.client.patch(f"/api/courses/sessions/{session['id']}", json={"title": "X"}, headers=headers)
    assert resp.status_code == 403
    resp = api.client.delete(f"/api/courses/chapters/{chapter['id']}", headers=headers)
    assert resp.status_code == 403
    assert api.client.get("/api/courses/admin/course-stats", headers=headers).status_code == 403


def test_curriculum_is_public_but_videos_are_locked(api, admin):
    course, _, _ = _course_with_chapter(api, admin)

    resp = api.client.get(f"/api/courses/{course['id']}/sessions")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total_chapters"] == 1
    chapter = data["sessions"][0]["chapters"][0]
    assert chapter["title"] == "Opening Range"
    assert chapter["video_url"] is None
    assert chapter["has_access"] is False

    page = api.client.get(f"/api/courses/{course['slug']}/chapters/opening-range")
    assert page.status_code == 200
    assert page.json()["data"]["course"]["title"] == "Intraday Scalping"

    missing = api.client.get(f"/api/courses/{course['slug']}/chapters/nope")
    assert missing.status_code == 404


def test_chapter_update_and_duplicate_slug(api, admin):
    course, session, chapter = _course_with_chapter(api, admin)
    headers = api.headers(admin)

    dup = api.client.post(
        f"/api/courses/sessions/{session['id']}/chapters",
        json={"title": "Opening Range", "video_url": "https://videos.test/2"},
        headers=headers,
    )
    assert dup.status_code == 409

    bad = api.client.patch(f"/api/courses/chapters/{chapter['id']}", json={"title": None}, headers=headers)
    assert bad.status_code == 400
    assert bad.json()["errors"][0]["field"] == "title"

    renamed = api.client.patch(
        f"/api/courses/chapters/{chapter['id']}", json={"title": "ORB Basics"}, headers=headers
    )
    assert renamed.status_code == 200
    assert renamed.json()["data"]["title"] == "ORB Basics"
    assert renamed.json()["data"]["slug"] == "opening-range"

    assert api.client.delete(f"/api/courses/sessions/{session['id']}", headers=headers).status_code == 200
    gone = api.client.patch(f"/api/courses/chapters/{chapter['id']}", json={"title": "X"}, headers=headers)
    assert gone.status_code == 404
    outline = api.client.get(f"/api/courses/{course['id']}/sessions").json()["data"]
    assert outline["sessions"] == []


def test_progress_needs_enrollment_then_completes_course(api, student, admin):
    course, _, chapter = _course_with_chapter(api, admin)
    headers = api.headers(student)

    refused = api.client.post(
        f"/api/courses/chapters/{chapter['id']}/progress", json={"progress": 95}, headers=headers
    )
    assert refused.status_code == 403
    assert api.client.get(f"/api/courses/{course['id']}/progress", headers=headers).status_code == 404

    enrolled = api.client.post(
        "/api/courses/admin/manual-enroll",
        json={"email": student.email, "course_id": course["id"]},
        headers=api.headers(admin),
    )
    assert enrolled.status_code == 201
    again = api.client.post(
        "/api/courses/admin/manual-enroll",
        json={"email": student.email, "course_id": course["id"]},
        headers=api.headers(admin),
    )
    assert again.status_code == 409

    done = api.client.post(
        f"/api/courses/chapters/{chapter['id']}/progress", json={"progress": 95}, headers=headers
    )
    assert done.status_code == 200
    assert done.json()["message"] == "Course completed"

    progress = api.client.get(f"/api/courses/{course['id']}/progress", headers=headers).json()["data"]
    assert progress["percentage"] == 100
    assert progress["is_completed"] is True

    page = api.client.get(
        f"/api/courses/{course['slug']}/chapters/opening-range", headers=headers
    ).json()["data"]
    assert page["chapter"]["video_url"] == "https://videos.test/orb"
    assert page["chapter"]["completed"] is True

    certs = api.client.get("/api/certificates/mine", headers=headers).json()["data"]
    assert [c["title"] for c in certs] == ["Intraday Scalping"]


def test_admin_enrollment_reports(api, student, admin):
    course, _, chapter = _course_with_chapter(api, admin)
    admin_headers = api.headers(admin)
    api.client.post(
        "/api/courses/admin/manual-enroll",
        json={"email": student.email, "course_id": course["id"]},
        headers=admin_headers,
    )
    api.client.post(
        f"/api/courses/chapters/{chapter['id']}/progress",
        json={"progress": 30},
        headers=api.headers(student),
    )

    listing = api.client.get(
        "/api/courses/admin/enrollments",
        params={"course_id": course["id"], "search": "student@"},
        headers=admin_headers,
    )
    assert listing.status_code == 200
    body = listing.json()
    assert body["pagination"]["total"] == 1
    row = body["data"][0]
    assert row["user"]["email"] == student.email
    assert row["progress"]["completed_chapters"] == 0
    assert row["progress"]["last_watched_at"] is not None

    details = api.client.get(f"/api/courses/admin/enrollments/{row['id']}", headers=admin_headers)
    assert details.json()["data"]["course"]["title"] == "Intraday Scalping"

    stats = api.client.get("/api/courses/admin/course-stats", headers=admin_headers).json()["data"]
    assert stats[0]["total_enrollments"] == 1
    assert stats[0]["total_chapters"] == 1
    assert stats[0]["completed_enrollments"] == 0
