from datetime import datetime, timezone
from fastapi.testclient import TestClient
from app.main import app
from app.core.normalize import normalize_record
from app.core.receipts import filter_receipts, suggest_clients, summarize_receipts
from app.schemas.record import Client, Receipt
import uuid

client = TestClient(app)

RECEIPTS = [
    {"id": "r1", "date": "2024-03-05", "amount": "PKR 10,000", "clientName": "Ali Traders", "clientCnic": "3520211111111", "paymentMethod": "cash"},
    {"id": "r2", "date": "2024-03-01", "amount": 5000, "clientName": "Noor Textiles", "clientCnic": "3520222222222", "paymentMethod": "bank_transfer"},
    {"id": "r3", "date": "2024-02-10", "amount": 3001, "clientName": "", "clientCnic": "3520233333333", "paymentMethod": "cash"},
]

CLIENTS = [
    {"id": "c1", "name": "Ali Traders", "cnic": "3520211111111", "type": "IRIS"},
    {"id": "c2", "name": "Zainab Khan", "cnic": "3520233333333", "type": "SECP"},
    {"id": "c3", "name": "Zahid Ali", "cnic": "4210144444444", "type": "Other"},
]

def receipts():
    return [normalize_record(r, Receipt) for r in RECEIPTS]

def clients():
    return [normalize_record(c, Client) for c in CLIENTS]

def test_filter_by_search_and_method():
    assert [r.id for r in filter_receipts(receipts(), search="noor")] == ["r2"]
    assert [r.id for r in filter_receipts(receipts(), search="35202")] == ["r1", "r2", "r3"]
    assert [r.id for r in filter_receipts(receipts(), payment_method="cash")] == ["r1", "r3"]
    assert [r.id for r in filter_receipts(receipts(), search="ali", payment_method="bank_transfer")] == []
    assert len(filter_receipts(receipts())) == 3

def test_filter_matches_registered_client_name():
    # r3 has no client name on the receipt, only the CNIC of Zainab Khan
    assert [r.id for r in filter_receipts(receipts(), search="zainab", clients=clients())] == ["r3"]
    assert filter_receipts(receipts(), search="zainab") == []

def test_summary():
    now = datetime(2024, 3, 20, tzinfo=timezone.utc)
    summary = summarize_receipts(receipts(), now=now)

    assert summary.total_receipts == 3
    assert summary.total_revenue == 18001
    assert summary.this_month_count == 2
    assert summary.average_amount == 6000
    assert summary.by_payment_method == {"cash": 13001, "bank_transfer": 5000}
    assert summary.currency == "PKR"

def test_summary_empty():
    summary = summarize_receipts([])
    assert summary.total_receipts == 0
    assert summary.average_amount == 0
    assert summary.by_payment_method == {}

def test_client_suggestions():
    assert suggest_clients(clients(), "35") == []
    assert [c.id for c in suggest_clients(clients(), "ali")] == ["c1", "c3"]
    assert [c.id for c in suggest_clients(clients(), "42101")] == ["c3"]
    assert len(suggest_clients(clients() * 3, "352", limit=5)) == 5

def _seed(headers):
    for collection in ("receipts", "clients"):
        client.post(f"/collections/{collection}/listen", headers=headers)
    client.put("/collections/receipts/local", json=RECEIPTS, headers=headers)
    client.post("/collections/clients/remote", json=CLIENTS, headers=headers)

def test_receipts_endpoints():
    print("Testing receipts endpoints...")
    headers = {"X-Tenant-ID": f"receipts-{uuid.uuid4().hex[:6]}"}
    _seed(headers)

    response = client.get("/receipts", headers=headers)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["r1", "r2", "r3"]

    response = client.get("/receipts", params={"search": "zainab"}, headers=headers)
    assert [r["id"] for r in response.json()] == ["r3"]

    response = client.get("/receipts", params={"payment_method": "bank_transfer"}, headers=headers)
    assert [r["id"] for r in response.json()] == ["r2"]

    summary = client.get("/receipts/summary", headers=headers).json()
    assert summary["total_receipts"] == 3
    assert summary["total_revenue"] == 18001
    assert summary["average_amount"] == 6000

    suggestions = client.get("/clients/suggestions", params={"q": "Zah"}, headers=headers).json()
    assert [c["id"] for c in suggestions] == ["c3"]
    print("PASSED: receipts endpoints")

if __name__ == "__main__":
    test_receipts_endpoints()
