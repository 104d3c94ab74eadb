from datetime import datetime, timedelta, UTC
import pytest
import time_machine
from newsdesk.models.comment import Comment, CommentLike

BASE_TIME = datetime(2024, 4, 1, 12, 0, tzinfo=UTC)

@pytest.fixture
def comments_url(published_article):
    return f"/api/articles/{published_article['id']}/comments"

@pytest.fixture
def post_comment(reader, comments_url):
    """Post a comment as `reader` at a fixed minute after BASE_TIME"""
    def _post(content, parent_id=None, minute=0, actor=None):
        actor = actor or reader
        with time_machine.travel(BASE_TIME + timedelta(minutes=minute), tick=False):
            response = actor.client.post(comments_url, json={"content": content, "parent_id": parent_id})
        assert response.status_code == 201
        return response.json()
    return _post

class TestCommentCreation:
    @pytest.mark.parametrize("role_fixture", ["reader", "author"])
    def test_create_comment(self, request, role_fixture, comments_url):
        actor = request.getfixturevalue(role_fixture)
        response = actor.client.post(comments_url, json={"content": "  Bài viết rất hay  "})
        assert response.status_code == 201
        data = response.json()
        assert data["content"] == "Bài viết rất hay"
        assert data["author_id"] == actor.id
        assert data["parent_id"] is None
        assert data["likes_count"] == 0

    @pytest.mark.parametrize("role_fixture", ["editor", "admin"])
    def test_staff_cannot_comment(self, request, role_fixture, comments_url):
        actor = request.getfixturevalue(role_fixture)
        response = actor.client.post(comments_url, json={"content": "Ý kiến"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Only Reader or Author can comment"

    def test_anonymous_cannot_comment(self, client, comments_url):
        response = client.post(comments_url, json={"content": "Ý kiến"})
        assert response.status_code == 401

    def test_comment_on_unpublished_article(self, reader, draft_article):
        response = reader.client.post(f"/api/articles/{draft_article['id']}/comments", json={"content": "Sớm quá"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot comment on unpublished articles"

    def test_comment_on_missing_article(self, reader):
        response = reader.client.post("/api/articles/missing/comments", json={"content": "Ý kiến"})
        assert response.status_code == 404

    @pytest.mark.parametrize("content", ["", "   ", "x" * 1001])
    def test_invalid_content(self, reader, comments_url, content):
        response = reader.client.post(comments_url, json={"content": content})
        assert response.status_code == 422

    def test_max_length_content(self, reader, comments_url):
        response = reader.client.post(comments_url, json={"content": "x" * 1000})
        assert response.status_code == 201

    def test_reply_to_missing_parent(self, reader, comments_url):
        response = reader.client.post(comments_url, json={"content": "Trả lời", "parent_id": "missing"})
        assert response.status_code == 404

    def test_reply_across_articles(self, reader, author, editor, test_article_data, post_comment):
        """A reply must stay within the article of its parent"""
        parent = post_comment("Bình luận gốc")
        other = author.client.post("/api/articles", json=test_article_data).json()
        editor.client.post(f"/api/articles/{other['id']}:publish")

        response = reader.client.post(
            f"/api/articles/{other['id']}/comments",
            json={"content": "Lạc chỗ", "parent_id": parent["id"]}
        )
        assert response.status_code == 400

class TestCommentTree:
    def test_tree_order(self, client, comments_url, post_comment):
        """Top level newest first, replies oldest first at every depth"""
        first = post_comment("Thứ nhất", minute=0)
        second = post_comment("Thứ hai", minute=1)
        reply_late = post_comment("Trả lời sau", parent_id=first["id"], minute=5)
        reply_early = post_comment("Trả lời trước", parent_id=first["id"], minute=2)
        nested = post_comment("Trả lời lồng", parent_id=reply_early["id"], minute=3)

        response = client.get(comments_url)
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [c["id"] for c in data["data"]] == [second["id"], first["id"]]

        first_node = data["data"][1]
        assert [r["id"] for r in first_node["replies"]] == [reply_early["id"], reply_late["id"]]
        assert [r["id"] for r in first_node["replies"][0]["replies"]] == [nested["id"]]
        assert first_node["replies"][1]["replies"] == []
        assert data["data"][0]["replies"] == []

    def test_deep_thread(self, client, comments_url, post_comment):
        parent_id = None
        for depth in range(30):
            parent_id = post_comment(f"Tầng {depth}", parent_id=parent_id, minute=depth)["id"]

        node = client.get(comments_url).json()["data"][0]
        depth = 0
        while node["replies"]:
            node = node["replies"][0]
            depth += 1
        assert depth == 29

    def test_list_replies(self, client, post_comment):
        top = post_comment("Gốc", minute=0)
        reply = post_comment("Con", parent_id=top["id"], minute=1)
        grandchild = post_comment("Cháu", parent_id=reply["id"], minute=2)

        response = client.get(f"/api/comments/{top['id']}/replies")
        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data] == [reply["id"]]
        assert [r["id"] for r in data[0]["replies"]] == [grandchild["id"]]

    def test_replies_of_missing_comment(self, client):
        response = client.get("/api/comments/missing/replies")
        assert response.status_code == 404

    def test_comments_of_draft_hidden(self, client, reader, draft_article):
        response = client.get(f"/api/articles/{draft_article['id']}/comments")
        assert response.status_code == 403

    def test_orphaned_reply_shown_at_top_level(self, client, comments_url, post_comment, db_session, published_article, reader):
        post_comment("Gốc", minute=0)
        db_session.add(Comment(
            article_id=published_article["id"],
            author_id=reader.id,
            parent_id="gone",
            content="Mồ côi",
        ))
        db_session.commit()

        data = client.get(comments_url).json()
        assert data["count"] == 2
        assert "Mồ côi" in {c["content"] for c in data["data"]}

class TestCommentUpdate:
    def test_update_own_comment(self, reader, post_comment):
        comment = post_comment("Ban đầu")
        response = reader.client.put(f"/api/comments/{comment['id']}", json={"content": "Đã sửa"})
        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "Đã sửa"
        assert data["updated_at"] > data["created_at"]

    @pytest.mark.parametrize("role_fixture", ["author", "admin"])
    def test_update_others_comment(self, request, role_fixture, post_comment):
        actor = request.getfixturevalue(role_fixture)
        comment = post_comment("Của người khác")
        response = actor.client.put(f"/api/comments/{comment['id']}", json={"content": "Sửa trộm"})
        assert response.status_code == 403

class TestCommentDeletion:
    def test_delete_cascades_to_replies(self, reader, client, comments_url, post_comment, db_session):
        """Deleting a comment with N replies removes N+1 comments"""
        top = post_comment("Gốc", minute=0)
        child = post_comment("Con", parent_id=top["id"], minute=1)
        post_comment("Cháu", parent_id=child["id"], minute=2)
        post_comment("Con 2", parent_id=top["id"], minute=3)
        survivor = post_comment("Khác", minute=4)

        response = reader.client.delete(f"/api/comments/{top['id']}")
        assert response.status_code == 200
        assert response.json() == {"deleted": 4}

        remaining = db_session.query(Comment).all()
        assert [c.id for c in remaining] == [survivor["id"]]
        assert all(c.parent_id is None for c in remaining)
        assert client.get(comments_url).json()["count"] == 1

    def test_delete_removes_likes(self, reader, author, post_comment, db_session):
        top = post_comment("Gốc")
        reply = post_comment("Con", parent_id=top["id"], minute=1)
        author.client.post(f"/api/comments/{top['id']}/like")
        author.client.post(f"/api/comments/{reply['id']}/like")

        reader.client.delete(f"/api/comments/{top['id']}")
        assert db_session.query(CommentLike).count() == 0

    def test_admin_deletes_any_comment(self, admin, post_comment):
        comment = post_comment("Vi phạm")
        response = admin.client.delete(f"/api/comments/{comment['id']}")
        assert response.status_code == 200
        assert response.json() == {"deleted": 1}

    @pytest.mark.parametrize("role_fixture", ["author", "editor"])
    def test_others_cannot_delete(self, request, role_fixture, post_comment):
        actor = request.getfixturevalue(role_fixture)
        comment = post_comment("Của tôi")
        response = actor.client.delete(f"/api/comments/{comment['id']}")
        assert response.status_code == 403

    def test_delete_missing_comment(self, admin):
        response = admin.client.delete("/api/comments/missing")
        assert response.status_code == 404

class TestCommentLikes:
    def test_like_toggle(self, author, post_comment):
        """Liking twice restores the original state"""
        comment = post_comment("Thích không?")

        response = author.client.post(f"/api/comments/{comment['id']}/like")
        assert response.status_code == 200
        assert response.json() == {"liked": True, "likes_count": 1}

        response = author.client.post(f"/api/comments/{comment['id']}/like")
        assert response.json() == {"liked": False, "likes_count": 0}

    def test_likes_from_different_users(self, reader, author, editor, client, comments_url, post_comment):
        comment = post_comment("Nhiều lượt thích")
        for actor in (reader, author, editor):
            assert actor.client.post(f"/api/comments/{comment['id']}/like").json()["liked"] is True

        data = client.get(comments_url).json()
        assert data["data"][0]["likes_count"] == 3

    def test_anonymous_cannot_like(self, client, post_comment):
        comment = post_comment("Ẩn danh")
        response = client.post(f"/api/comments/{comment['id']}/like")
        assert response.status_code == 401

    def test_like_missing_comment(self, reader):
        response = reader.client.post("/api/comments/missing/like")
        assert response.status_code == 404
