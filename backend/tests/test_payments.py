"""Tests for payment collection: toggling, listing totals, repair and reminders."""
from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from circle.models.payment import Payment, PaymentStatus
from circle.models.rsvp import Rsvp, RsvpStatus
from circle.services import payment_service
from tests.conftest import (
    add_test_member,
    create_test_circle,
    create_test_event,
    create_test_user,
    rsvp,
)


def _setup(client, members: int = 2):
    owner = create_test_user(client, name="Owner")
    circle = create_test_circle(client, creator_id=owner["user_id"])
    users = []
    for i in range(members):
        user = create_test_user(client, name=f"Member {i}")
        add_test_member(client, circle, user["user_id"])
        users.append(user)
    event = create_test_event(client, circle, fee=1500)
    return owner, circle, event, users


def _list(client, event, **params):
    query = "&".join(f"{k}={v}" for k, v in params.items())
    resp = client.get(f"/api/payments/?event_id={event['event_id']}&{query}")
    assert resp.status_code == 200, resp.text
    return resp.json()


def _toggle(client, payment_id, actor_id):
    return client.post(f"/api/payments/{payment_id}/toggle?actor_user_id={actor_id}")


class TestToggle:

    def test_owner_toggles_both_ways(self, client):
        owner, _, event, (member, _) = _setup(client)
        rsvp(client, event, member["user_id"], "yes")
        payment_id = _list(client, event)["payments"][0]["payment_id"]

        resp = _toggle(client, payment_id, owner["user_id"])
        assert resp.status_code == 200
        assert resp.json()["status"] == "paid"

        resp = _toggle(client, payment_id, owner["user_id"])
        assert resp.json()["status"] == "unpaid"

    def test_admin_may_toggle(self, client):
        owner, circle, event, (admin, member) = _setup(client)
        client.patch(
            f"/api/circles/{circle['circle_id']}/members/{admin['user_id']}?actor_user_id={owner['user_id']}",
            json={"role": "admin"},
        )
        rsvp(client, event, member["user_id"], "yes")
        payment_id = _list(client, event)["payments"][0]["payment_id"]

        assert _toggle(client, payment_id, admin["user_id"]).json()["status"] == "paid"

    def test_member_toggle_is_noop(self, client):
        _, _, event, (member, _) = _setup(client)
        rsvp(client, event, member["user_id"], "yes")
        payment_id = _list(client, event)["payments"][0]["payment_id"]

        resp = _toggle(client, payment_id, member["user_id"])
        assert resp.status_code == 200
        assert resp.json()["status"] == "unpaid"
        assert _list(client, event)["payments"][0]["status"] == "unpaid"

    def test_toggle_does_not_touch_rsvp(self, client):
        owner, _, event, (member, _) = _setup(client)
        rsvp(client, event, member["user_id"], "yes")
        payment_id = _list(client, event)["payments"][0]["payment_id"]
        _toggle(client, payment_id, owner["user_id"])

        rsvps = client.get(f"/api/events/{event['event_id']}/rsvps").json()
        assert [r["status"] for r in rsvps] == ["yes"]

    def test_unknown_payment(self, client):
        owner, _, _, _ = _setup(client)
        assert _toggle(client, "missing", owner["user_id"]).status_code == 404


class TestListing:

    def test_totals_and_unpaid_filter(self, client):
        owner, _, event, (a, b) = _setup(client)
        rsvp(client, event, a["user_id"], "yes")
        rsvp(client, event, b["user_id"], "yes")
        paid_id = next(p["payment_id"] for p in _list(client, event)["payments"] if p["user_id"] == a["user_id"])
        _toggle(client, paid_id, owner["user_id"])

        data = _list(client, event)
        assert data["fee"] == 1500
        assert data["paid_count"] == 1
        assert data["unpaid_count"] == 1
        assert data["collected_amount"] == 1500
        assert data["outstanding_amount"] == 1500
        assert len(data["payments"]) == 2

        unpaid = _list(client, event, unpaid_only="true")
        assert [p["display_name"] for p in unpaid["payments"]] == ["Member 1"]
        assert unpaid["paid_count"] == 1


class TestReconcile:

    def test_repairs_orphaned_and_missing_rows(self, client, db):
        owner, _, event, (a, b) = _setup(client)
        now = datetime.now(timezone.utc)
        # a: yes RSVP without a payment; b: stale unpaid payment without a yes
        db.add(Rsvp(event_id=event["event_id"], user_id=a["user_id"], status=RsvpStatus.yes, updated_at=now))
        db.add(Rsvp(event_id=event["event_id"], user_id=b["user_id"], status=RsvpStatus.no, updated_at=now))
        db.add(Payment(event_id=event["event_id"], user_id=b["user_id"], status=PaymentStatus.unpaid, updated_at=now))
        db.add(Payment(event_id=event["event_id"], user_id=owner["user_id"], status=PaymentStatus.paid, updated_at=now))
        db.commit()

        resp = client.post(
            f"/api/payments/reconcile?event_id={event['event_id']}&actor_user_id={owner['user_id']}"
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["created"] == [a["user_id"]]
        assert data["removed"] == [b["user_id"]]

        statuses = {p["user_id"]: p["status"] for p in _list(client, event)["payments"]}
        assert statuses == {a["user_id"]: "unpaid", owner["user_id"]: "paid"}

    def test_reconcile_is_manager_only(self, client):
        _, _, event, (member, _) = _setup(client)
        resp = client.post(
            f"/api/payments/reconcile?event_id={event['event_id']}&actor_user_id={member['user_id']}"
        )
        assert resp.status_code == 403

    def test_concurrent_write_conflict_is_409(self, client, db, monkeypatch):
        _, _, event, (a, _) = _setup(client)
        db.add(Rsvp(event_id=event["event_id"], user_id=a["user_id"], status=RsvpStatus.yes,
                    updated_at=datetime.now(timezone.utc)))
        db.commit()

        def _conflict():
            raise IntegrityError("INSERT INTO payments", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(db, "commit", _conflict)
        with pytest.raises(HTTPException) as exc:
            payment_service.reconcile_event_payments(db, event["event_id"])
        assert exc.value.status_code == 409

        monkeypatch.undo()
        db.expire_all()
        assert db.query(Payment).filter(Payment.event_id == event["event_id"]).count() == 0


class TestReminders:

    def test_reminder_targets_unpaid_members(self, client):
        owner, _, event, (a, b) = _setup(client)
        rsvp(client, event, a["user_id"], "yes")
        rsvp(client, event, b["user_id"], "yes")
        paid_id = next(p["payment_id"] for p in _list(client, event)["payments"] if p["user_id"] == a["user_id"])
        _toggle(client, paid_id, owner["user_id"])

        resp = client.post(
            f"/api/payments/reminders?event_id={event['event_id']}&actor_user_id={owner['user_id']}"
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["recipients"] == [b["user_id"]]
        assert "¥1,500" in data["body"]
        assert data["url"] == f"/payments?event_id={event['event_id']}"
