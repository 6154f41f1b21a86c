"""Inventory CRUD, search, export and import under /api/items."""

import io

from openpyxl import Workbook, load_workbook

from extensions import db
from modules.items.models import Item
from modules.transactions.models import Transaction


def _create(client, **fields):
    payload = {"sku": "bolt-m8", "name": "Bolt M8", "category": "Fasteners", "quantity": 10}
    payload.update(fields)
    return client.post("/api/items", json=payload)


def test_items_require_login(client):
    assert client.get("/api/items").status_code == 401


def test_admin_creates_item(admin_client, app):
    resp = _create(admin_client, sku="  bolt-m8 ", location="A-01")
    assert resp.status_code == 201
    item = resp.get_json()["item"]
    assert item["sku"] == "BOLT-M8"
    assert item["quantity"] == 10
    assert item["unit"] == "pcs"
    assert item["location"] == "A-01"

    with app.app_context():
        assert Item.query.filter_by(sku="BOLT-M8").one().name == "Bolt M8"


def test_staff_cannot_create_item(staff_client):
    assert _create(staff_client).status_code == 403


def test_create_validates_fields(admin_client):
    assert _create(admin_client, sku="").status_code == 400
    assert _create(admin_client, name=None).status_code == 400
    assert _create(admin_client, quantity=-1).status_code == 400
    assert _create(admin_client, quantity="lots").status_code == 400
    assert _create(admin_client, quantity=1.5).status_code == 400


def test_create_rejects_duplicate_sku(admin_client):
    assert _create(admin_client).status_code == 201
    assert _create(admin_client, sku="BOLT-m8").status_code == 409


def test_list_and_search(admin_client, staff_client):
    _create(admin_client)
    _create(admin_client, sku="NUT-M8", name="Nut M8", category="Fasteners", quantity=5)
    _create(admin_client, sku="GLV-01", name="Work gloves", category="Safety", quantity=3)

    resp = staff_client.get("/api/items")
    assert resp.status_code == 200
    assert [i["name"] for i in resp.get_json()["items"]] == ["Bolt M8", "Nut M8", "Work gloves"]

    resp = staff_client.get("/api/items", query_string={"q": "m8"})
    assert resp.get_json()["count"] == 2

    resp = staff_client.get("/api/items", query_string={"category": "Safety"})
    assert [i["sku"] for i in resp.get_json()["items"]] == ["GLV-01"]


def test_get_item_and_missing(admin_client):
    item_id = _create(admin_client).get_json()["item"]["id"]
    assert admin_client.get(f"/api/items/{item_id}").get_json()["item"]["sku"] == "BOLT-M8"

    resp = admin_client.get("/api/items/9999")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Item not found."


def test_update_item(admin_client):
    item_id = _create(admin_client).get_json()["item"]["id"]
    resp = admin_client.patch(f"/api/items/{item_id}", json={"name": "Hex bolt M8", "location": "B-02"})
    assert resp.status_code == 200
    item = resp.get_json()["item"]
    assert item["name"] == "Hex bolt M8"
    assert item["location"] == "B-02"
    assert item["category"] == "Fasteners"


def test_update_refuses_quantity_and_duplicate_sku(admin_client):
    first = _create(admin_client).get_json()["item"]["id"]
    _create(admin_client, sku="NUT-M8", name="Nut M8")

    assert admin_client.put(f"/api/items/{first}", json={"quantity": 99}).status_code == 400
    assert admin_client.put(f"/api/items/{first}", json={"sku": "nut-m8"}).status_code == 409
    assert admin_client.put(f"/api/items/{first}", json={"name": " "}).status_code == 400


def test_delete_item(admin_client, app):
    item_id = _create(admin_client).get_json()["item"]["id"]
    assert admin_client.delete(f"/api/items/{item_id}").status_code == 200
    with app.app_context():
        assert db.session.get(Item, item_id) is None


def test_delete_refuses_items_with_ledger(admin_client, app, admin_id):
    item_id = _create(admin_client).get_json()["item"]["id"]
    with app.app_context():
        db.session.add(Transaction(item_id=item_id, user_id=admin_id, type="IN", quantity=1))
        db.session.commit()
    assert admin_client.delete(f"/api/items/{item_id}").status_code == 409


def test_export_xlsx(admin_client):
    _create(admin_client)
    resp = admin_client.get("/api/items/export")
    assert resp.status_code == 200
    assert resp.mimetype.endswith("spreadsheetml.sheet")

    ws = load_workbook(io.BytesIO(resp.data)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0][:2] == ("sku", "name")
    assert rows[1][0] == "BOLT-M8"
    assert rows[1][-1] == 10


def test_import_csv(admin_client, app):
    _create(admin_client)
    data = (
        "sku,name,category,quantity\n"
        "BOLT-M8,Duplicate,Fasteners,1\n"
        "WSH-M8,Washer M8,Fasteners,40\n"
        ",no sku,,\n"
        "TAPE-1,,Packing,3\n"
        "TAPE-2,Tape,Packing,-4\n"
    )
    resp = admin_client.post(
        "/api/items/import",
        data={"file": (io.BytesIO(data.encode()), "items.csv")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert resp.get_json() == {"added": 1, "skipped": ["BOLT-M8"], "invalid": [5, 6]}
    with app.app_context():
        assert Item.query.filter_by(sku="WSH-M8").one().quantity == 40


def test_import_xlsx(admin_client, app):
    wb = Workbook()
    ws = wb.active
    ws.append(["SKU", "Name", "Unit", "Quantity"])
    ws.append(["rope-10", "Rope 10m", "roll", 2])
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)

    resp = admin_client.post(
        "/api/items/import",
        data={"file": (buf, "items.xlsx")},
        content_type="multipart/form-data",
    )
    assert resp.get_json()["added"] == 1
    with app.app_context():
        item = Item.query.filter_by(sku="ROPE-10").one()
        assert (item.unit, item.quantity) == ("roll", 2)


def test_import_rejects_bad_uploads(admin_client, staff_client):
    assert admin_client.post("/api/items/import", data={}, content_type="multipart/form-data").status_code == 400
    resp = admin_client.post(
        "/api/items/import",
        data={"file": (io.BytesIO(b"x"), "items.txt")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    resp = staff_client.post(
        "/api/items/import",
        data={"file": (io.BytesIO(b"sku\n"), "items.csv")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 403
