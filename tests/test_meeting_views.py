"""Meeting visitors and one-to-one screens against the fake backend."""
from app.chapterdesk.modules.one_to_ones.service import can_respond, with_display_fields
from app.chapterdesk.modules.visitors.service import VISITOR_SCHEMA
from app.chapterdesk.session import SessionContext

MEMBER = SessionContext(token="t", user_id=1, email="a@example.com", member_id=7, chapter_id=3)

GUEST = {
    "name": "Kiran Rao", "gender": "Male", "mobile1": "9876543210", "chapter": "Pune Central",
    "category": "Legal", "addressLine1": "12 MG Road", "city": "Pune", "pincode": "411001", "status": "Invited",
}


class TestVisitorForm:
    def test_cross_chapter_visitor_needs_home_chapter_and_inviter(self):
        _, errors = VISITOR_SCHEMA.validate({"isCrossChapter": "true"})
        assert errors == {
            "chapterId": "Home Chapter is required for cross-chapter visitors",
            "invitedById": "Invited By is required for cross-chapter visitors",
        }

    def test_cross_chapter_visitor_skips_guest_details(self):
        _, errors = VISITOR_SCHEMA.validate({"isCrossChapter": "true", "chapterId": "2", "invitedById": "9"})
        assert errors == {}

    def test_guest_needs_contact_details(self):
        _, errors = VISITOR_SCHEMA.validate({"name": "Kiran Rao"})
        assert errors["mobile1"] == "Primary mobile number is required"
        assert errors["chapter"] == "Chapter name is required"
        assert errors["addressLine1"] == "Address line 1 is required"
        assert "name" not in errors


class TestOneToOneRules:
    def test_only_requested_member_answers_pending(self):
        assert can_respond({"status": "pending", "requestedId": 7}, MEMBER)
        assert can_respond({"status": "Pending", "requested": {"id": 7}}, MEMBER)
        assert not can_respond({"status": "accepted", "requestedId": 7}, MEMBER)
        assert not can_respond({"status": "pending", "requestedId": 9}, MEMBER)
        assert not can_respond({"status": "pending", "requestedId": 7}, None)

    def test_other_member_depends_on_tab(self):
        one = {"id": 1, "status": "pending", "requester": {"memberName": "Ravi"}, "requested": {"memberName": "Meera"}}
        assert with_display_fields([one], "requested")[0]["otherMemberName"] == "Meera"
        row = with_display_fields([one], "received")[0]
        assert row["otherMemberName"] == "Ravi"
        assert row["statusLabel"] == "Pending"
        assert row["chapterName"] == "-"


def test_meeting_list_links_to_visitors(client, backend, login):
    backend.on("GET", "/chapter-meetings", {"meetings": [{"id": 5, "meetingTitle": "Weekly", "date": "2024-06-04"}]})
    login(client)
    r = client.get("/chapter-meetings")
    assert b"/visitors/meetings/5" in r.data


def test_visitor_list_is_scoped_to_meeting(client, backend, login):
    backend.on("GET", "/visitors", {"visitors": [
        {"id": 1, "name": "Kiran Rao", "status": "Invited", "invitedByMember": {"memberName": "Asha"}},
    ]})
    login(client)
    r = client.get("/visitors/meetings/5?meetingId=99&status=Invited")
    assert b"Kiran Rao" in r.data
    query = backend.calls_to("GET", "/visitors")[0][2]
    assert query["meetingId"] == "5"
    assert query["status"] == "Invited"


def test_new_visitor_starts_in_meeting_chapter(client, backend, login):
    backend.on("GET", "/chapter-meetings/5", {"id": 5, "chapterId": 3, "chapter": {"id": 3, "name": "Pune Central"}})
    login(client)
    r = client.get("/visitors/meetings/5/new")
    assert r.status_code == 200
    assert b'value="Pune Central"' in r.data
    assert b'<option value="Invited" selected>' in r.data


def test_visitor_is_created_for_the_meeting(client, backend, login):
    backend.on("POST", "/visitors", {"id": 11}, status=201)
    backend.on("GET", "/visitors", {"visitors": []})
    csrf = login(client)
    r = client.post("/visitors/meetings/5/new", data={"csrf_token": csrf, **GUEST}, follow_redirects=True)
    assert b"Visitor created successfully" in r.data
    body = backend.calls_to("POST", "/visitors")[0][3]
    assert body["meetingId"] == 5
    assert body["name"] == "Kiran Rao"
    assert body["isCrossChapter"] is False
    assert backend.calls_to("GET", "/visitors")[0][2]["meetingId"] == "5"


def test_cross_chapter_visitor_without_inviter_is_not_sent(client, backend, login):
    csrf = login(client)
    r = client.post(
        "/visitors/meetings/5/new",
        data={"csrf_token": csrf, "isCrossChapter": "true", "chapterId": "2"},
    )
    assert r.status_code == 400
    assert b"Invited By is required for cross-chapter visitors" in r.data
    assert backend.calls_to("POST", "/visitors") == []


def test_requested_one_to_ones_are_filtered_for_session_member(client, backend, login):
    backend.on("GET", "/one-to-ones/requested", {"oneToOnes": [
        {"id": 1, "date": "2024-06-01", "status": "pending", "requestedId": 9,
         "requested": {"id": 9, "memberName": "Meera"}, "chapter": {"name": "Pune Central"}},
    ], "totalPages": 1})
    login(client)
    r = client.get("/one-to-ones?status=pending")
    assert b"Meera" in r.data and b"Pune Central" in r.data
    assert b"/one-to-ones/1/respond" not in r.data
    query = backend.calls_to("GET", "/one-to-ones/requested")[0][2]
    assert query["memberId"] == "7"
    assert query["status"] == "pending"


def test_received_one_to_ones_offer_answers_only_while_pending(client, backend, login):
    backend.on("GET", "/one-to-ones/received", {"oneToOnes": [
        {"id": 2, "date": "2024-06-01", "status": "pending", "requestedId": 7, "requester": {"memberName": "Ravi"}},
        {"id": 3, "date": "2024-05-01", "status": "accepted", "requestedId": 7, "requester": {"memberName": "Neha"}},
    ]})
    login(client)
    r = client.get("/one-to-ones/received")
    assert b"Ravi" in r.data and b"Neha" in r.data
    assert b"/one-to-ones/2/respond" in r.data
    assert b"/one-to-ones/3/respond" not in r.data


def test_accepting_a_one_to_one_patches_status(client, backend, login):
    backend.on("PATCH", "/one-to-ones/2/status", {"id": 2, "status": "accepted"})
    backend.on("GET", "/one-to-ones/received", {"oneToOnes": []})
    csrf = login(client)
    r = client.post("/one-to-ones/2/respond", data={"csrf_token": csrf, "status": "accepted"}, follow_redirects=True)
    assert b"Meeting status updated to accepted" in r.data
    assert backend.calls_to("PATCH", "/one-to-ones/2/status")[0][3] == {"status": "accepted"}


def test_unknown_answer_is_not_sent(client, backend, login):
    backend.on("GET", "/one-to-ones/received", {"oneToOnes": []})
    csrf = login(client)
    r = client.post("/one-to-ones/2/respond", data={"csrf_token": csrf, "status": "completed"}, follow_redirects=True)
    assert b"Invalid status" in r.data
    assert backend.calls_to("PATCH", "/one-to-ones/2/status") == []


def test_new_one_to_one_offers_chapter_members_except_self(client, backend, login):
    backend.on("GET", "/api/members", {"members": [
        {"id": 7, "memberName": "Asha Patel"},
        {"id": 9, "memberName": "Meera"},
    ]})
    login(client)
    r = client.get("/one-to-ones/new")
    assert b'<option value="9"' in r.data
    assert b'<option value="7"' not in r.data
    assert backend.calls_to("GET", "/api/members")[0][2]["chapterId"] == "3"
