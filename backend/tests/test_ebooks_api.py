"""Tests for e-book categories, catalog, premium-gated downloads and uploads."""
import io

import pytest
from PIL import Image

from app.errors import ExternalProviderError
from app.models.generated import EbookCategories, Ebooks, Subscriptions, UserEbookAccess


@pytest.fixture
def category(db):
    obj = EbookCategories(name="Nutrition", description="Food and health")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def _ebook(db, category, title="Healthy Eating", premium=False, active=True, **extra):
    obj = Ebooks(
        category_id=category.id,
        title=title,
        author="Dr. Silva",
        file_url=f"/uploads/ebooks/{title.lower().replace(' ', '-')}.pdf",
        file_type="pdf",
        file_size=1024,
        is_premium=int(premium),
        price=19.9 if premium else None,
        is_active=int(active),
        **extra,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def premium_user(db, make_user, provider):
    user, headers = make_user("premium-1")
    db.add(Subscriptions(user_id=user.id, preapproval_id="pre-1", status="ACTIVE"))
    db.commit()
    provider.statuses["pre-1"] = "authorized"
    return user, headers


def _png(width=100, height=50):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buf, "PNG")
    return buf.getvalue()


class TestCategories:

    def test_list_counts_active_ebooks(self, client, db, category):
        _ebook(db, category, "Book One")
        _ebook(db, category, "Book Two", active=False)
        db.add(EbookCategories(name="Anxiety"))
        db.commit()

        r = client.get("/ebook-categories/")

        assert r.status_code == 200
        assert [(c["name"], c["ebook_count"]) for c in r.json()] == [("Anxiety", 0), ("Nutrition", 1)]

    def test_create_requires_admin(self, client, make_user):
        _, headers = make_user()
        r = client.post("/ebook-categories/", json={"name": "Sleep"}, headers=headers)
        assert r.status_code == 403

    def test_create_and_duplicate(self, client, admin_headers):
        r = client.post("/ebook-categories/", json={"name": "Sleep"}, headers=admin_headers)
        assert r.status_code == 201
        assert r.json()["ebook_count"] == 0

        r = client.post("/ebook-categories/", json={"name": "Sleep"}, headers=admin_headers)
        assert r.status_code == 400

    def test_rename_to_existing_name(self, client, db, category, admin_headers):
        db.add(EbookCategories(name="Sleep"))
        db.commit()
        r = client.patch(f"/ebook-categories/{category.id}", json={"name": "Sleep"}, headers=admin_headers)
        assert r.status_code == 400

    def test_rename_to_null(self, client, category, admin_headers):
        r = client.patch(f"/ebook-categories/{category.id}", json={"name": None}, headers=admin_headers)
        assert r.status_code == 422
        assert client.get("/ebook-categories/").json()[0]["name"] == category.name

    def test_delete_blocked_while_in_use(self, client, db, category, admin_headers):
        _ebook(db, category)
        r = client.delete(f"/ebook-categories/{category.id}", headers=admin_headers)
        assert r.status_code == 400

    def test_delete_empty(self, client, category, admin_headers):
        r = client.delete(f"/ebook-categories/{category.id}", headers=admin_headers)
        assert r.status_code == 204
        assert client.get("/ebook-categories/").json() == []


class TestCatalog:

    def test_anonymous_sees_premium_locked(self, client, db, category, provider):
        _ebook(db, category, "Free Book")
        _ebook(db, category, "Premium Book", premium=True)

        r = client.get("/ebooks/")

        assert r.status_code == 200
        access = {e["title"]: e["has_access"] for e in r.json()["items"]}
        assert access == {"Free Book": True, "Premium Book": False}
        assert provider.calls == []

    def test_premium_user_unlocks_all_with_one_check(self, client, db, category, provider, premium_user):
        _, headers = premium_user
        _ebook(db, category, "Premium One", premium=True)
        _ebook(db, category, "Premium Two", premium=True)

        r = client.get("/ebooks/", headers=headers)

        assert all(e["has_access"] for e in r.json()["items"])
        assert provider.calls == ["pre-1"]

    def test_free_only_list_skips_premium_check(self, client, db, category, provider, premium_user):
        _, headers = premium_user
        _ebook(db, category, "Free Book")

        client.get("/ebooks/", headers=headers)
        assert provider.calls == []

    def test_inactive_hidden(self, client, db, category):
        _ebook(db, category, "Hidden Book", active=False)
        assert client.get("/ebooks/").json()["total"] == 0

    def test_filters_and_pagination(self, client, db, category):
        for i in range(5):
            _ebook(db, category, f"Free Book {i}")
        _ebook(db, category, "Mindful Premium", premium=True)

        r = client.get("/ebooks/", params={"is_premium": "false", "limit": 2, "page": 3})
        data = r.json()
        assert data["total"] == 5
        assert data["total_pages"] == 3
        assert len(data["items"]) == 1

        r = client.get("/ebooks/", params={"search": "MINDFUL"})
        assert [e["title"] for e in r.json()["items"]] == ["Mindful Premium"]

    def test_limit_bounds(self, client):
        assert client.get("/ebooks/", params={"limit": 101}).status_code == 422
        assert client.get("/ebooks/", params={"page": 0}).status_code == 422

    def test_get_increments_views(self, client, db, category):
        ebook = _ebook(db, category)

        client.get(f"/ebooks/{ebook.id}")
        r = client.get(f"/ebooks/{ebook.id}")

        assert r.json()["view_count"] == 2
        assert r.json()["category"]["name"] == "Nutrition"

    def test_get_missing(self, client):
        assert client.get("/ebooks/999").status_code == 404


class TestDownload:

    def test_free_anonymous(self, client, db, category):
        ebook = _ebook(db, category, "Free Book")

        r = client.get(f"/ebooks/{ebook.id}/download")

        assert r.status_code == 200
        assert r.json() == {
            "download_url": "/uploads/ebooks/free-book.pdf",
            "filename": "Free Book.pdf",
            "file_size": 1024,
            "file_type": "pdf",
        }
        db.expire_all()
        assert ebook.download_count == 1

    def test_premium_anonymous(self, client, db, category):
        ebook = _ebook(db, category, premium=True)
        assert client.get(f"/ebooks/{ebook.id}/download").status_code == 401

    def test_premium_without_subscription(self, client, db, category, make_user):
        ebook = _ebook(db, category, premium=True)
        _, headers = make_user()

        r = client.get(f"/ebooks/{ebook.id}/download", headers=headers)

        assert r.status_code == 403
        assert "Premium access required" in r.json()["detail"]
        db.expire_all()
        assert ebook.download_count == 0

    def test_premium_with_subscription(self, client, db, category, premium_user):
        user, headers = premium_user
        ebook = _ebook(db, category, premium=True)

        client.get(f"/ebooks/{ebook.id}/download", headers=headers)
        r = client.get(f"/ebooks/{ebook.id}/download", headers=headers)

        assert r.status_code == 200
        access = db.query(UserEbookAccess).filter_by(user_id=user.id, ebook_id=ebook.id).one()
        assert access.download_count == 2
        assert access.last_download is not None

    def test_premium_provider_down_denies(self, client, db, category, premium_user, provider):
        _, headers = premium_user
        provider.statuses["pre-1"] = ExternalProviderError("timeout")
        ebook = _ebook(db, category, premium=True)

        assert client.get(f"/ebooks/{ebook.id}/download", headers=headers).status_code == 403

    def test_inactive(self, client, db, category):
        ebook = _ebook(db, category, active=False)
        assert client.get(f"/ebooks/{ebook.id}/download").status_code == 400

    def test_missing(self, client):
        assert client.get("/ebooks/999/download").status_code == 404


class TestUserLibrary:

    def test_access_then_library(self, client, db, category, make_user):
        _, headers = make_user()
        opened = _ebook(db, category, "Opened Book")
        downloaded = _ebook(db, category, "Downloaded Book")

        r = client.post(f"/ebooks/{opened.id}/access", headers=headers)
        assert r.status_code == 200
        assert r.json()["download_count"] == 0
        client.get(f"/ebooks/{downloaded.id}/download", headers=headers)

        titles = {e["title"] for e in client.get("/users/me/ebooks", headers=headers).json()}
        assert titles == {"Opened Book", "Downloaded Book"}

        r = client.get("/users/me/ebooks", params={"downloaded": "true"}, headers=headers)
        assert [e["title"] for e in r.json()] == ["Downloaded Book"]

    def test_access_requires_login(self, client, db, category):
        ebook = _ebook(db, category)
        assert client.post(f"/ebooks/{ebook.id}/access").status_code == 401

    def test_access_inactive(self, client, db, category, make_user):
        _, headers = make_user()
        ebook = _ebook(db, category, active=False)
        assert client.post(f"/ebooks/{ebook.id}/access", headers=headers).status_code == 400


class TestAdmin:

    def test_stats(self, client, db, category, admin_headers):
        _ebook(db, category, "Free Book", download_count=3, view_count=10)
        _ebook(db, category, "Premium Book", premium=True, download_count=1, view_count=5)
        _ebook(db, category, "Old Book", active=False, download_count=100)

        r = client.get("/ebooks/stats", headers=admin_headers)

        assert r.json() == {
            "total_ebooks": 2,
            "premium_ebooks": 1,
            "free_ebooks": 1,
            "total_downloads": 4,
            "total_views": 15,
            "categories_count": 1,
        }

    def test_stats_requires_admin(self, client, make_user):
        _, headers = make_user()
        assert client.get("/ebooks/stats", headers=headers).status_code == 403

    def test_upload(self, client, category, admin_headers, upload_dir):
        r = client.post(
            "/ebooks/",
            data={
                "title": "Sleep Better",
                "author": "Dr. Costa",
                "category_id": str(category.id),
                "is_premium": "true",
                "price": "29.90",
            },
            files={
                "ebook_file": ("sleep.pdf", b"%PDF-1.4 fake", "application/pdf"),
                "cover_image": ("cover.png", _png(1600, 800), "image/png"),
            },
            headers=admin_headers,
        )

        assert r.status_code == 201, r.text
        data = r.json()
        assert data["file_type"] == "pdf"
        assert data["is_premium"] is True
        assert data["file_url"].startswith("/uploads/ebooks/")
        assert (upload_dir / data["file_url"].removeprefix("/uploads/")).read_bytes() == b"%PDF-1.4 fake"

        cover = upload_dir / data["cover_image"].removeprefix("/uploads/")
        with Image.open(cover) as img:
            assert img.size == (800, 400)

    def test_upload_extension_follows_content_type(self, client, category, admin_headers, upload_dir):
        r = client.post(
            "/ebooks/",
            data={"title": "Sleep Better", "author": "Dr. Costa", "category_id": str(category.id)},
            files={"ebook_file": ("payload.html", b"<script>alert(1)</script>", "application/pdf")},
            headers=admin_headers,
        )

        assert r.status_code == 201, r.text
        data = r.json()
        assert data["file_type"] == "pdf"
        assert data["file_url"].endswith(".pdf")
        assert (upload_dir / data["file_url"].removeprefix("/uploads/")).exists()
        assert list(upload_dir.rglob("*.html")) == []

    def test_upload_rejects_wrong_type(self, client, category, admin_headers, upload_dir):
        r = client.post(
            "/ebooks/",
            data={"title": "Sleep Better", "author": "Dr. Costa", "category_id": str(category.id)},
            files={"ebook_file": ("sleep.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )
        assert r.status_code == 400
        assert not (upload_dir / "ebooks").exists() or not any((upload_dir / "ebooks").iterdir())

    def test_upload_rejects_broken_cover(self, client, category, admin_headers, upload_dir):
        r = client.post(
            "/ebooks/",
            data={"title": "Sleep Better", "author": "Dr. Costa", "category_id": str(category.id)},
            files={
                "ebook_file": ("sleep.pdf", b"%PDF-1.4 fake", "application/pdf"),
                "cover_image": ("cover.png", b"not an image", "image/png"),
            },
            headers=admin_headers,
        )
        assert r.status_code == 400
        assert list(upload_dir.rglob("*.*")) == []

    def test_upload_premium_requires_price(self, client, category, admin_headers):
        r = client.post(
            "/ebooks/",
            data={
                "title": "Sleep Better",
                "author": "Dr. Costa",
                "category_id": str(category.id),
                "is_premium": "true",
            },
            files={"ebook_file": ("sleep.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers,
        )
        assert r.status_code == 422

    def test_upload_unknown_category(self, client, admin_headers):
        r = client.post(
            "/ebooks/",
            data={"title": "Sleep Better", "author": "Dr. Costa", "category_id": "999"},
            files={"ebook_file": ("sleep.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers,
        )
        assert r.status_code == 400

    def test_update(self, client, db, category, admin_headers):
        ebook = _ebook(db, category)

        r = client.patch(f"/ebooks/{ebook.id}", json={"title": "New Title"}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["title"] == "New Title"

        r = client.patch(f"/ebooks/{ebook.id}", json={"is_premium": True}, headers=admin_headers)
        assert r.status_code == 400

        r = client.patch(f"/ebooks/{ebook.id}", json={"category_id": 999}, headers=admin_headers)
        assert r.status_code == 400

    @pytest.mark.parametrize("field", ["title", "author", "category_id", "is_premium", "is_active"])
    def test_update_rejects_null_for_required_field(self, client, db, category, admin_headers, field):
        ebook = _ebook(db, category)

        r = client.patch(f"/ebooks/{ebook.id}", json={field: None}, headers=admin_headers)

        assert r.status_code == 422
        assert client.get(f"/ebooks/{ebook.id}").json()["title"] == "Healthy Eating"

    def test_update_clears_optional_description(self, client, db, category, admin_headers):
        ebook = _ebook(db, category, description="Short read")
        r = client.patch(f"/ebooks/{ebook.id}", json={"description": None}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["description"] is None

    def test_delete_removes_files(self, client, db, category, admin_headers, upload_dir):
        (upload_dir / "ebooks").mkdir()
        stored = upload_dir / "ebooks" / "book.pdf"
        stored.write_bytes(b"%PDF")
        ebook = _ebook(db, category)
        ebook.file_url = "/uploads/ebooks/book.pdf"
        db.commit()

        r = client.delete(f"/ebooks/{ebook.id}", headers=admin_headers)

        assert r.status_code == 204
        assert not stored.exists()
        assert client.get(f"/ebooks/{ebook.id}").status_code == 404
