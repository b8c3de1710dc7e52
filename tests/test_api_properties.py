import asyncio

from fixtures.properties import (
    apartment_row,
    builder_floor_row,
    legacy_apartment_row,
    legacy_builder_floor_row,
)


def seed(repos, *rows):
    for row in rows:
        repos.properties.seed(row)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_list_returns_cards_with_summaries(client, repos):
    seed(repos, apartment_row(), builder_floor_row())

    r = client.get("/properties")
    assert r.status_code == 200, r.text
    cards = {c["slug"]: c for c in r.json()["items"]}

    bf = cards["dlf-phase-2-floors"]
    assert bf["kind"] == "builder_floor"
    assert bf["lowest_price"] == 4.5
    assert bf["area_range_label"] == "300-500 sqyd"
    assert bf["price_label"] == "₹ 4.5 Cr onwards"
    assert bf["status"] == "available"

    apt = cards["godrej-sora"]
    assert apt["bhk_labels"] == ["3BHK", "4BHK"]
    assert apt["price_label"] == "₹ 5.5 Cr onwards"
    assert apt["status"] == "under-construction"


def test_list_filters_by_kind_and_location(client, repos):
    seed(repos, apartment_row(), builder_floor_row(), legacy_builder_floor_row())

    r = client.get("/properties", params={"kind": "builder-floor"})
    assert sorted(c["slug"] for c in r.json()["items"]) == ["dlf-phase-2-floors", "sushant-lok-floors"]

    r = client.get("/properties", params={"location": "sector 53"})
    assert [c["slug"] for c in r.json()["items"]] == ["godrej-sora"]


def test_list_pages_newest_first_with_exact_total(client, repos):
    for i in range(14):
        repos.properties.seed(
            apartment_row(
                id=100 + i,
                name=f"Tower Park {i}",
                slug=f"tower-park-{i}",
                created_at=f"2024-01-{i + 1:02d}T00:00:00+00:00",
            )
        )

    first = client.get("/properties").json()
    assert first["total"] == 14
    assert first["page"] == 1
    assert first["page_size"] == 12
    assert first["total_pages"] == 2
    assert len(first["items"]) == 12
    assert first["items"][0]["slug"] == "tower-park-13"

    second = client.get("/properties", params={"page": 2}).json()
    assert [c["slug"] for c in second["items"]] == ["tower-park-1", "tower-park-0"]
    assert second["total"] == 14

    empty = client.get("/properties", params={"page": 3}).json()
    assert empty["items"] == []
    assert empty["total"] == 14


def test_list_filters_by_developer_and_area(client, repos):
    seed(
        repos,
        apartment_row(),
        legacy_apartment_row(developer="M3M India", area="12 acres"),
        builder_floor_row(),
        legacy_builder_floor_row(),
    )

    r = client.get("/properties", params={"developer": "godrej"})
    assert [c["slug"] for c in r.json()["items"]] == ["godrej-sora"]
    assert r.json()["total"] == 1

    r = client.get("/properties", params={"area": "acres", "kind": "apartment"})
    assert sorted(c["slug"] for c in r.json()["items"]) == ["godrej-sora", "m3m-golf-estate"]

    # flat plot_size on legacy rows, per-building plot sizes otherwise
    r = client.get("/properties", params={"area": "250"})
    assert [c["slug"] for c in r.json()["items"]] == ["sushant-lok-floors"]
    r = client.get("/properties", params={"area": "500"})
    assert [c["slug"] for c in r.json()["items"]] == ["dlf-phase-2-floors"]


def test_list_rejects_page_zero(client):
    assert client.get("/properties", params={"page": 0}).status_code == 422


def test_list_rejects_unknown_kind(client):
    r = client.get("/properties", params={"kind": "villa"})
    assert r.status_code == 422


def test_detail_normalizes_legacy_rows(client, repos):
    seed(repos, legacy_builder_floor_row())

    r = client.get("/properties/sushant-lok-floors")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["property"]["kind"] == "builder_floor"
    (building,) = body["property"]["configs"]
    assert building["building_number"] == 1
    assert building["roof_rights"] == "half"
    assert body["summary"]["lowest_price"] == 2.9
    assert body["price_label"] == "₹ 2.9 Cr onwards"


def test_detail_orders_gallery_rows(client, repos):
    seed(repos, apartment_row())
    asyncio.run(
        repos.gallery.insert_many(
            1,
            [
                {"image_url": "https://cdn.test/second.jpg", "display_order": 2},
                {"image_url": "https://cdn.test/first.jpg", "display_order": 1},
            ],
        )
    )

    body = client.get("/properties/godrej-sora").json()
    assert body["property"]["gallery_image_urls"] == [
        "https://cdn.test/first.jpg",
        "https://cdn.test/second.jpg",
    ]


def test_detail_404(client):
    assert client.get("/properties/nope").status_code == 404


def test_delete_requires_admin(client, repos):
    seed(repos, apartment_row())

    assert client.delete("/admin/properties/1").status_code == 401
    r = client.delete("/admin/properties/1", headers={"Authorization": "Bearer wrong"})
    assert r.status_code == 401
    assert len(repos.properties.all()) == 1


def test_delete_removes_record_gallery_and_files(client, repos, admin_headers):
    seed(repos, apartment_row(brochure_url="https://cdn.test/properties/godrej-sora/brochure-1.pdf"))
    asyncio.run(repos.gallery.insert_many(1, [{"image_url": "https://cdn.test/g1.jpg", "display_order": 1}]))

    r = client.delete("/admin/properties/1", headers=admin_headers)

    assert r.status_code == 200, r.text
    assert r.json() == {"deleted": True, "id": 1}
    assert repos.properties.all() == []
    assert asyncio.run(repos.gallery.list_for(1)) == []
    assert set(repos.storage.deleted) == {
        "https://cdn.test/properties/godrej-sora/cover-1.jpg",
        "https://cdn.test/properties/godrej-sora/brochure-1.pdf",
        "https://cdn.test/g1.jpg",
    }


def test_delete_missing_property(client, admin_headers):
    assert client.delete("/admin/properties/42", headers=admin_headers).status_code == 404
