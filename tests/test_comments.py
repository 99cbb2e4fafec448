from __future__ import annotations

from conftest import auth, login, register


def _comment(client, token, slug, body):
    return client.post(f"/api/comment/create/{slug}", json={"comments": {"body": body}}, headers=auth(token))


def test_add_and_list_comments_newest_first(client, user_token, create_manga):
    create_manga("Haikyuu", poster=False)

    res = _comment(client, user_token, "haikyuu", "first!")
    assert res.status_code == 201
    created = res.json()["comments"]
    assert created["body"] == "first!"
    assert created["author"] == {"username": "reader1", "image": ""}

    _comment(client, user_token, "haikyuu", "second")
    _comment(client, user_token, "haikyuu", "third")

    res = client.get("/api/comment/get/haikyuu")
    assert res.status_code == 200
    assert [c["body"] for c in res.json()["comments"]] == ["third", "second", "first!"]


def test_comment_requires_auth_and_manga(client, user_token):
    assert client.post("/api/comment/create/x", json={"comments": {"body": "hi"}}).status_code == 401
    res = _comment(client, user_token, "no-such-manga", "hello")
    assert res.status_code == 404
    assert res.json()["message"] == "Manga not found"
    assert client.get("/api/comment/get/no-such-manga").status_code == 404


def test_comment_body_validation(client, user_token, create_manga):
    create_manga("Kaiju No 8", poster=False)
    assert _comment(client, user_token, "kaiju-no-8", "").status_code == 400
    blank = _comment(client, user_token, "kaiju-no-8", "   ")
    assert blank.status_code == 400
    assert blank.json()["message"] == "Comment body is required"
    assert client.get("/api/comment/get/kaiju-no-8").json()["comments"] == []

    res = _comment(client, user_token, "kaiju-no-8", "  what a chapter  ")
    assert res.status_code == 201
    assert res.json()["comments"]["body"] == "what a chapter"


def test_only_author_can_delete(client, user_token, create_manga):
    create_manga("Spy Family", poster=False)
    mine = _comment(client, user_token, "spy-family", "mine").json()["comments"]

    register(client, "reader2")
    other_token = login(client, "reader2")
    theirs = _comment(client, other_token, "spy-family", "theirs").json()["comments"]

    res = client.delete(f"/api/comment/delete/spy-family/{mine['id']}", headers=auth(other_token))
    assert res.status_code == 403
    assert res.json()["message"] == "Only the author of the comment can delete the comment"
    bodies = [c["body"] for c in client.get("/api/comment/get/spy-family").json()["comments"]]
    assert "mine" in bodies

    res = client.delete(f"/api/comment/delete/spy-family/{mine['id']}", headers=auth(user_token))
    assert res.status_code == 200
    assert [c["id"] for c in res.json()["comments"]] == [theirs["id"]]


def test_delete_missing_comment(client, user_token, create_manga):
    create_manga("Jujutsu Kaisen", poster=False)
    create_manga("Sakamoto Days", poster=False)
    comment = _comment(client, user_token, "jujutsu-kaisen", "hello").json()["comments"]

    assert client.delete("/api/comment/delete/jujutsu-kaisen/999", headers=auth(user_token)).status_code == 404
    # comment exists but belongs to another manga
    res = client.delete(f"/api/comment/delete/sakamoto-days/{comment['id']}", headers=auth(user_token))
    assert res.status_code == 404
