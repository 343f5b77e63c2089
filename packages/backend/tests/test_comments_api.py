"""Comment and reaction API tests."""

import asyncio

import pytest

from folio.services.comment_service import CommentService


async def _post_comment(client, text="Nice site!"):
    resp = await client.post("/api/v1/comments", json={"text": text})
    assert resp.status_code == 201
    return resp.json()


async def _react(client, comment_id, type_="like", user_id="visitor-1"):
    return await client.post(
        f"/api/v1/comments/{comment_id}/reactions",
        json={"type": type_, "user_id": user_id},
    )


@pytest.mark.asyncio
async def test_create_comment_is_public(unauthenticated_client):
    resp = await unauthenticated_client.post(
        "/api/v1/comments", json={"text": "  Love the music  "}
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["text"] == "Love the music"
    assert data["likes"] == 0
    assert data["reactions"] == []


@pytest.mark.asyncio
async def test_blank_comment_rejected(client):
    resp = await client.post("/api/v1/comments", json={"text": "   "})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_comments_newest_first(client):
    await _post_comment(client, "first")
    await _post_comment(client, "second")

    resp = await client.get("/api/v1/comments")
    assert resp.status_code == 200
    assert [c["text"] for c in resp.json()] == ["second", "first"]


@pytest.mark.asyncio
async def test_update_and_delete_comment(client):
    comment = await _post_comment(client)

    resp = await client.patch(f"/api/v1/comments/{comment['id']}", json={"text": "Edited"})
    assert resp.status_code == 200
    assert resp.json()["text"] == "Edited"

    resp = await client.delete(f"/api/v1/comments/{comment['id']}")
    assert resp.json() == {"success": True}
    assert (await client.get("/api/v1/comments")).json() == []


@pytest.mark.asyncio
async def test_update_missing_comment_404(client):
    resp = await client.patch("/api/v1/comments/missing", json={"text": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_moderation_requires_admin(unauthenticated_client):
    comment = (
        await unauthenticated_client.post("/api/v1/comments", json={"text": "hi"})
    ).json()

    resp = await unauthenticated_client.delete(f"/api/v1/comments/{comment['id']}")
    assert resp.status_code == 401
    resp = await unauthenticated_client.patch(
        f"/api/v1/comments/{comment['id']}", json={"text": "spam"}
    )
    assert resp.status_code == 401


# ═══════════════════════════════════════════════════════════
# Reactions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_reaction_toggles(client):
    comment = await _post_comment(client)

    resp = await _react(client, comment["id"], "like")
    assert resp.status_code == 200
    assert resp.json() == {"action": "added"}

    [listed] = (await client.get("/api/v1/comments")).json()
    assert listed["likes"] == 1
    assert [(r["user_id"], r["type"]) for r in listed["reactions"]] == [
        ("visitor-1", "likes")
    ]

    # Plural spelling names the same reaction
    resp = await _react(client, comment["id"], "likes")
    assert resp.json() == {"action": "removed"}

    [listed] = (await client.get("/api/v1/comments")).json()
    assert listed["likes"] == 0
    assert listed["reactions"] == []


@pytest.mark.asyncio
async def test_reactions_are_per_user_and_type(client):
    comment = await _post_comment(client)
    await _react(client, comment["id"], "fire", "a")
    await _react(client, comment["id"], "fire", "b")
    await _react(client, comment["id"], "heart", "a")

    [listed] = (await client.get("/api/v1/comments")).json()
    assert listed["fires"] == 2
    assert listed["hearts"] == 1
    assert len(listed["reactions"]) == 3


@pytest.mark.asyncio
async def test_unknown_reaction_type_400(client):
    comment = await _post_comment(client)
    resp = await _react(client, comment["id"], "thumbsdown")
    assert resp.status_code == 400
    assert "Invalid reaction type" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_reaction_on_missing_comment_404(client):
    resp = await _react(client, "missing", "wow")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_counter_never_negative(client, db_session):
    comment = await _post_comment(client)
    await _react(client, comment["id"], "laugh")

    # Counter drifted to 0 while the reaction row still exists
    svc = CommentService(db_session)
    row = await svc.get_comment(comment["id"])
    row.laughs = 0
    await db_session.commit()

    resp = await _react(client, comment["id"], "laugh")
    assert resp.json() == {"action": "removed"}
    [listed] = (await client.get("/api/v1/comments")).json()
    assert listed["laughs"] == 0


@pytest.mark.asyncio
async def test_deleting_comment_removes_reactions(client, db_session):
    comment = await _post_comment(client)
    await _react(client, comment["id"], "wow")
    await client.delete(f"/api/v1/comments/{comment['id']}")

    assert await CommentService(db_session).get_comment(comment["id"]) is None
    assert await CommentService(db_session).list_comments() == []


@pytest.mark.asyncio
async def test_concurrent_identical_reactions(client):
    """A double-click never fails, and the counter matches the reaction rows."""
    comment = await _post_comment(client)

    responses = await asyncio.gather(
        _react(client, comment["id"], "like"),
        _react(client, comment["id"], "like"),
    )
    assert [r.status_code for r in responses] == [200, 200]

    [listed] = (await client.get("/api/v1/comments")).json()
    assert listed["likes"] == len(listed["reactions"])
    assert listed["likes"] in (0, 1)


@pytest.mark.asyncio
async def test_losing_reaction_insert_reports_added(database, monkeypatch):
    """Another request inserts the same reaction between our lookup and commit."""
    async with database.session() as setup:
        comment = await CommentService(setup).create_comment("hi")

    async with database.session() as loser:
        real_commit = loser.commit

        async def commit_after_rival():
            async with database.session() as rival:
                await CommentService(rival).toggle_reaction(comment.id, "v1", "wow")
            await real_commit()

        monkeypatch.setattr(loser, "commit", commit_after_rival)
        action = await CommentService(loser).toggle_reaction(comment.id, "v1", "wow")

    assert action == "added"
    async with database.session() as check:
        row = await CommentService(check).get_comment(comment.id)
    assert row.wows == 1
    assert len(row.reactions) == 1
