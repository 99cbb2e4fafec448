from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine, update

from mangareader.config import Settings
from mangareader.main import create_app
from mangareader.models.user_model import User

SECRET = "test-secret-key-with-at-least-32-characters"
PASSWORD = "secret1"


def png_bytes(color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def sync_engine(settings: Settings):
    return create_engine(settings.database_url.replace("sqlite+aiosqlite", "sqlite"))


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, username: str, email: str | None = None, password: str = PASSWORD):
    return client.post(
        "/api/register",
        json={"user": {"username": username, "email": email or f"{username}@example.com", "password": password}},
    )


def login(client: TestClient, identifier: str, password: str = PASSWORD) -> str:
    res = client.post("/api/login", json={"user": {"identifier": identifier, "password": password}})
    assert res.status_code == 200, res.text
    return res.json()["user"]["token"]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        secret_key=SECRET,
        image_path=str(tmp_path / "images"),
        scrape_path=str(tmp_path / "scrape"),
        scrape_cleanup_seconds=0,
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def client(settings: Settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user_token(client: TestClient) -> str:
    assert register(client, "reader1").status_code == 201
    return login(client, "reader1")


@pytest.fixture
def admin_token(client: TestClient, settings: Settings) -> str:
    assert register(client, "admin1").status_code == 201
    engine = sync_engine(settings)
    with engine.begin() as conn:
        conn.execute(update(User).where(User.username == "admin1").values(role="admin"))
    engine.dispose()
    return login(client, "admin1")


@pytest.fixture
def create_manga(client: TestClient, admin_token: str):
    def _create(title: str, tags=(), slug: str | None = None, poster: bool = True):
        data = {"title": title, "tag_list": list(tags)}
        if slug:
            data["slug"] = slug
        files = {"image": ("poster.png", png_bytes(), "image/png")} if poster else None
        return client.post("/api/manga/create", data=data, files=files, headers=auth(admin_token))

    return _create


@pytest.fixture
def create_chapter(client: TestClient, admin_token: str):
    def _create(manga_slug: str, title: str, pages: int = 2, kind: str = "chapter", slug: str | None = None):
        data = {"manga_slug": manga_slug, "title": title}
        if slug:
            data["slug"] = slug
        files = [("image", (f"page {i}.png", png_bytes(), "image/png")) for i in range(pages)]
        return client.post(f"/api/manga/create/{kind}", data=data, files=files or None, headers=auth(admin_token))

    return _create
