from tests.conftest import NOW, auth_headers, make_member
from inzozi.services.contribution import record_contribution
from inzozi.services.fine import issue_fine, pay_fine


def test_unapproved_member_cannot_apply_for_loan(client, db):
    pending = make_member(db, email="new@example.com", approved=False)

    response = client.post(
        "/api/member/loans/apply",
        headers=auth_headers(pending),
        json={"amount": "10000", "purpose": "Seeds"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Your account is awaiting admin approval"


def test_apply_and_list_my_loans(client, member_headers):
    response = client.post("/api/member/loans/apply", headers=member_headers,
                           json={"amount": "80000", "purpose": "School fees"})

    assert response.status_code == 200
    loan = response.json()
    assert loan["status"] == "pending"
    assert loan["amount"] == 80000.0
    assert loan["installments"] == []

    mine = client.get("/api/member/loans", headers=member_headers).json()
    assert [l["id"] for l in mine] == [loan["id"]]


def test_apply_with_invalid_amount(client, member_headers):
    response = client.post("/api/member/loans/apply", headers=member_headers,
                           json={"amount": "0", "purpose": "School fees"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a valid amount"


def test_progress_and_contributions(client, db, member, member_headers):
    record_contribution(db, member.id, "105000", payment_date=NOW)

    progress = client.get("/api/member/progress", headers=member_headers).json()
    assert progress == {"contributed": 105000.0, "required": 105000.0, "remaining": 0.0, "percent": 100.0}

    contributions = client.get("/api/member/contributions", headers=member_headers).json()
    assert len(contributions) == 1
    assert contributions[0]["status"] == "completed"


def test_fines_and_payment_history(client, db, member, member_headers):
    fine = issue_fine(db, member.id, "5000", "Missed meeting", now=NOW)
    pay_fine(db, fine.id, "2000", now=NOW)

    fines = client.get("/api/member/fines", headers=member_headers).json()
    assert len(fines) == 1
    assert fines[0]["remaining_amount"] == 3000.0

    history = client.get(f"/api/member/fines/{fine.id}/payments", headers=member_headers)
    assert history.status_code == 200
    assert [p["amount"] for p in history.json()] == [2000.0]


def test_cannot_read_another_members_fine_history(client, db, member_headers):
    other = make_member(db, email="other@example.com", full_name="Other Member")
    fine = issue_fine(db, other.id, "1000", "Late", now=NOW)

    response = client.get(f"/api/member/fines/{fine.id}/payments", headers=member_headers)

    assert response.status_code == 404


def test_unapproved_member_cannot_read_member_pages(client, db):
    pending = make_member(db, email="new@example.com", approved=False)
    headers = auth_headers(pending)

    for path in ("/api/member/progress", "/api/member/loans", "/api/member/fines", "/api/member/contributions"):
        assert client.get(path, headers=headers).status_code == 403
