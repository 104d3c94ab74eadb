import pytest
from sqlalchemy.exc import IntegrityError
from newsdesk.core.errors import Conflict
from newsdesk.core.policy import Caller
from newsdesk.models.comment import Comment
from newsdesk.models.deletion_request import DeletionRequest, DeletionRequestStatus
from newsdesk.models.user import UserRole
from newsdesk.services import deletion_requests as request_service

REASON = "Thông tin trong bài đã lỗi thời"

@pytest.fixture
def file_request(author, published_article):
    def _file(reason=REASON, actor=None, article_id=None):
        actor = actor or author
        return actor.client.post("/api/deletion-requests", json={
            "article_id": article_id or published_article["id"],
            "reason": reason
        })
    return _file

@pytest.fixture
def pending_request(file_request):
    response = file_request()
    assert response.status_code == 201
    return response.json()

class TestDeletionRequestCreation:
    def test_create_request(self, author, published_article, file_request):
        response = file_request()
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["author_id"] == author.id
        assert data["article_title"] == published_article["title"]
        assert data["article"]["id"] == published_article["id"]
        assert data["reviewer_id"] is None

    def test_request_flow(self, file_request):
        """Nine characters are too few, a valid reason files the request, a second one conflicts"""
        assert file_request(reason="too short").status_code == 400
        response = file_request(reason="this needs to go now")
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert file_request(reason="this needs to go now").status_code == 409

    def test_reason_too_short(self, file_request):
        response = file_request(reason="123456789")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    def test_reason_boundaries(self, file_request):
        assert file_request(reason="x" * 501).status_code == 400
        assert file_request(reason="x" * 10).status_code == 201

    def test_reason_is_trimmed(self, file_request):
        response = file_request(reason="   ngắn   ")
        assert response.status_code == 400

    def test_second_pending_request(self, file_request, pending_request):
        response = file_request(reason="Một lý do khác hẳn")
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_not_own_article(self, other_author, file_request):
        response = file_request(actor=other_author)
        assert response.status_code == 403
        assert response.json()["detail"] == "You can only request deletion of your own articles"

    def test_reader_cannot_request(self, reader, file_request):
        response = file_request(actor=reader)
        assert response.status_code == 403

    def test_unpublished_article(self, author, draft_article, file_request):
        response = file_request(article_id=draft_article["id"])
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_missing_article(self, file_request):
        response = file_request(article_id="missing")
        assert response.status_code == 404

    def test_missing_article_checked_before_reason(self, file_request):
        response = file_request(article_id="missing", reason="ngắn")
        assert response.status_code == 404

    def test_one_pending_per_article_in_database(self, author, published_article, db_session):
        """The partial unique index holds even without the service pre-check"""
        for _ in range(2):
            db_session.add(DeletionRequest(
                article_id=published_article["id"],
                article_title=published_article["title"],
                author_id=author.id,
                reason=REASON,
                status=DeletionRequestStatus.PENDING,
            ))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_closed_requests_do_not_block(self, author, published_article, db_session):
        for status in (DeletionRequestStatus.REJECTED, DeletionRequestStatus.REJECTED, DeletionRequestStatus.PENDING):
            db_session.add(DeletionRequest(
                article_id=published_article["id"],
                article_title=published_article["title"],
                author_id=author.id,
                reason=REASON,
                status=status,
            ))
        db_session.commit()
        assert db_session.query(DeletionRequest).count() == 3

class TestDeletionRequestReview:
    def test_approve_deletes_article(self, editor, reader, client, published_article, pending_request, db_session):
        reader.client.post(f"/api/articles/{published_article['id']}/comments", json={"content": "Tiếc quá"})

        response = editor.client.post(f"/api/deletion-requests/{pending_request['id']}:approve")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "approved"
        assert data["reviewer_id"] == editor.id
        assert data["reviewed_at"] is not None
        assert data["article"] is None
        assert data["article_title"] == published_article["title"]

        assert client.get(f"/api/articles/{published_article['id']}").status_code == 404
        assert db_session.query(Comment).count() == 0

    def test_reject_keeps_article(self, admin, client, published_article, pending_request):
        response = admin.client.post(f"/api/deletion-requests/{pending_request['id']}:reject")
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert client.get(f"/api/articles/{published_article['id']}").status_code == 200

    def test_new_request_after_rejection(self, editor, file_request, pending_request):
        editor.client.post(f"/api/deletion-requests/{pending_request['id']}:reject")
        response = file_request(reason="Xin xem xét lại lần nữa")
        assert response.status_code == 201

    @pytest.mark.parametrize("first,second", [
        ("approve", "approve"),
        ("approve", "reject"),
        ("reject", "approve"),
        ("reject", "reject"),
    ])
    def test_reviewed_request_is_final(self, editor, pending_request, first, second):
        editor.client.post(f"/api/deletion-requests/{pending_request['id']}:{first}")
        response = editor.client.post(f"/api/deletion-requests/{pending_request['id']}:{second}")
        assert response.status_code == 409
        assert response.json()["detail"] == "This request has already been reviewed"

    @pytest.mark.parametrize("role_fixture", ["author", "reader"])
    def test_review_requires_staff(self, request, role_fixture, pending_request):
        actor = request.getfixturevalue(role_fixture)
        response = actor.client.post(f"/api/deletion-requests/{pending_request['id']}:approve")
        assert response.status_code == 403

    def test_review_missing_request(self, editor):
        response = editor.client.post("/api/deletion-requests/missing:approve")
        assert response.status_code == 404

    def test_approve_after_article_already_deleted(self, admin, editor, published_article, pending_request):
        admin.client.delete(f"/api/articles/{published_article['id']}")
        response = editor.client.post(f"/api/deletion-requests/{pending_request['id']}:approve")
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

    def test_reject_overlapping_approval(self, admin, editor, client, published_article, pending_request, db_session):
        """A reject that loaded the request before an approval committed does not overwrite it"""
        request_service.get_request(db_session, pending_request["id"])

        response = editor.client.post(f"/api/deletion-requests/{pending_request['id']}:approve")
        assert response.status_code == 200

        with pytest.raises(Conflict):
            request_service.reject_request(db_session, Caller(id=admin.id, role=UserRole.ADMIN), pending_request["id"])

        requests = editor.client.get("/api/deletion-requests").json()
        assert [r["status"] for r in requests] == ["approved"]
        assert client.get(f"/api/articles/{published_article['id']}").status_code == 404

    def test_approve_overlapping_rejection(self, admin, editor, client, published_article, pending_request, db_session):
        """An approval that loaded the request before a rejection committed deletes nothing"""
        request_service.get_request(db_session, pending_request["id"])

        response = editor.client.post(f"/api/deletion-requests/{pending_request['id']}:reject")
        assert response.status_code == 200

        with pytest.raises(Conflict):
            request_service.approve_request(db_session, Caller(id=admin.id, role=UserRole.ADMIN), pending_request["id"])

        requests = editor.client.get("/api/deletion-requests").json()
        assert [r["status"] for r in requests] == ["rejected"]
        assert client.get(f"/api/articles/{published_article['id']}").status_code == 200

class TestDeletionRequestListing:
    def test_list_all(self, editor, pending_request):
        response = editor.client.get("/api/deletion-requests")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [pending_request["id"]]

    def test_list_by_status(self, editor, pending_request):
        assert len(editor.client.get("/api/deletion-requests", params={"status": "pending"}).json()) == 1
        assert editor.client.get("/api/deletion-requests", params={"status": "approved"}).json() == []

    def test_list_requires_staff(self, author, pending_request):
        response = author.client.get("/api/deletion-requests")
        assert response.status_code == 403

    def test_list_mine(self, author, other_author, pending_request):
        response = author.client.get("/api/deletion-requests/mine")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [pending_request["id"]]
        assert other_author.client.get("/api/deletion-requests/mine").json() == []

    def test_list_mine_reader(self, reader):
        response = reader.client.get("/api/deletion-requests/mine")
        assert response.status_code == 403
