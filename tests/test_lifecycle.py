from datetime import datetime, timedelta, timezone

import pytest

from probid.repositories.bid_repo import BidRepository
from probid.repositories.project_repo import ProjectRepository


def test_full_marketplace_scenario(client, api, sent_notices):
    buyer = api.register("Bob", "BUYER")
    s1 = api.register("Sally", "SELLER")
    s2 = api.register("Steve", "SELLER")

    project = api.create_project(
        buyer,
        budget={"min": 100, "max": 200},
        deadline=(datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
    )
    assert project["status"] == "PENDING"
    assert project["seller_id"] is None

    bid1 = api.create_bid(s1, project["id"], amount=150, delivery_time=3)
    bid2 = api.create_bid(s2, project["id"], amount=180, delivery_time=5)
    assert bid1["status"] == bid2["status"] == "PENDING"

    res = api.select_bid(buyer, project["id"], bid1)
    assert res.status_code == 200
    selected = res.json()
    assert selected["status"] == "IN_PROGRESS"
    assert selected["seller_id"] == s1["id"]
    assert selected["seller"]["name"] == "Sally"

    bids = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"]).json()
    statuses = {bid["id"]: bid["status"] for bid in bids}
    assert statuses == {bid1["id"]: "ACCEPTED", bid2["id"]: "REJECTED"}

    res = client.post(f"/projects/{project['id']}/complete", headers=buyer["headers"])
    assert res.status_code == 200
    assert res.json()["status"] == "COMPLETED"
    assert res.json()["seller_id"] == s1["id"]

    # 完成後任何變更都不允許
    assert client.put(
        f"/projects/{project['id']}", json={"title": "Again"}, headers=buyer["headers"]
    ).status_code == 400
    assert client.delete(f"/projects/{project['id']}", headers=buyer["headers"]).status_code == 400
    assert api.select_bid(buyer, project["id"], bid2).status_code == 400
    assert client.post(f"/projects/{project['id']}/complete", headers=buyer["headers"]).status_code == 400

    events = [(n.event, n.to) for n in sent_notices]
    assert events == [
        ("bid_created", buyer["email"]),
        ("bid_created", buyer["email"]),
        ("bid_accepted", s1["email"]),
        ("project_completed", s1["email"]),
    ]


def test_exactly_one_accepted_bid_after_selection(client, api, buyer):
    sellers = [api.register(name, "SELLER") for name in ("Ann", "Ben", "Cat", "Dan")]
    project = api.create_project(buyer)
    bids = [api.create_bid(s, project["id"], amount=100 + i) for i, s in enumerate(sellers)]

    assert api.select_bid(buyer, project["id"], bids[2]).status_code == 200

    listed = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"]).json()
    accepted = [b for b in listed if b["status"] == "ACCEPTED"]
    rejected = [b for b in listed if b["status"] == "REJECTED"]
    assert [b["id"] for b in accepted] == [bids[2]["id"]]
    assert len(rejected) == 3


def test_select_bid_requires_matching_seller(client, api, buyer, seller):
    project = api.create_project(buyer)
    bid = api.create_bid(seller, project["id"])

    res = client.post(
        f"/projects/{project['id']}/select-bid",
        json={"bid_id": bid["id"], "seller_id": "someone-else"},
        headers=buyer["headers"],
    )
    assert res.status_code == 404
    assert res.json()["message"] == "Bid not found or does not match the project"


def test_select_bid_rejects_bid_from_other_project(client, api, buyer, seller):
    project = api.create_project(buyer)
    other = api.create_project(buyer)
    bid = api.create_bid(seller, other["id"])

    assert api.select_bid(buyer, project["id"], bid).status_code == 404


def test_select_bid_owner_only(client, api, buyer, seller):
    project = api.create_project(buyer)
    bid = api.create_bid(seller, project["id"])

    assert api.select_bid(seller, project["id"], bid).status_code == 403
    assert client.post(f"/projects/{project['id']}/complete", headers=seller["headers"]).status_code == 403


def test_select_bid_missing_fields(client, api, buyer):
    project = api.create_project(buyer)
    res = client.post(f"/projects/{project['id']}/select-bid", json={}, headers=buyer["headers"])
    assert res.status_code == 400


def test_complete_requires_in_progress(client, api, buyer):
    project = api.create_project(buyer)
    res = client.post(f"/projects/{project['id']}/complete", headers=buyer["headers"])
    assert res.status_code == 400
    assert res.json()["error"] is True


def test_project_update_and_delete_fail_once_in_progress(client, api, buyer, seller):
    project = api.create_project(buyer)
    bid = api.create_bid(seller, project["id"])
    api.select_bid(buyer, project["id"], bid)

    res = client.put(f"/projects/{project['id']}", json={"title": "x"}, headers=buyer["headers"])
    assert res.status_code == 400
    res = client.delete(f"/projects/{project['id']}", headers=buyer["headers"])
    assert res.status_code == 400


def test_bid_selection_is_all_or_nothing(client, api, buyer, monkeypatch):
    s1 = api.register("Sally", "SELLER")
    s2 = api.register("Steve", "SELLER")
    project = api.create_project(buyer)
    bid1 = api.create_bid(s1, project["id"])
    api.create_bid(s2, project["id"])

    async def fail(self, project_id, accepted_bid_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(BidRepository, "reject_other_bids", fail)
    with pytest.raises(RuntimeError):
        api.select_bid(buyer, project["id"], bid1)
    monkeypatch.undo()

    after = client.get(f"/projects/{project['id']}", headers=buyer["headers"]).json()
    assert after["status"] == "PENDING"
    assert after["seller_id"] is None
    bids = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"]).json()
    assert {b["status"] for b in bids} == {"PENDING"}


def test_losing_concurrent_selection_changes_nothing(client, api, buyer, monkeypatch, sent_notices):
    s1 = api.register("Sally", "SELLER")
    s2 = api.register("Steve", "SELLER")
    project = api.create_project(buyer)
    bid1 = api.create_bid(s1, project["id"])
    api.create_bid(s2, project["id"])

    # 另一個請求已先把案件移出 PENDING
    async def already_taken(self, project_id, seller_id):
        return False

    monkeypatch.setattr(ProjectRepository, "mark_in_progress", already_taken)
    res = api.select_bid(buyer, project["id"], bid1)
    monkeypatch.undo()

    assert res.status_code == 400
    assert res.json() == {
        "error": True,
        "message": "Cannot select a bid for a project that is already in progress or completed",
    }

    after = client.get(f"/projects/{project['id']}", headers=buyer["headers"]).json()
    assert after["status"] == "PENDING"
    assert after["seller_id"] is None
    bids = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"]).json()
    assert {b["status"] for b in bids} == {"PENDING"}
    assert [n.event for n in sent_notices] == ["bid_created", "bid_created"]


def test_losing_concurrent_completion_changes_nothing(client, api, buyer, seller, monkeypatch, sent_notices):
    project = api.create_project(buyer)
    bid = api.create_bid(seller, project["id"])
    assert api.select_bid(buyer, project["id"], bid).status_code == 200

    async def already_completed(self, project_id):
        return False

    monkeypatch.setattr(ProjectRepository, "mark_completed", already_completed)
    res = client.post(f"/projects/{project['id']}/complete", headers=buyer["headers"])
    monkeypatch.undo()

    assert res.status_code == 400
    assert res.json()["message"] == "Only projects that are in progress can be marked as completed"

    after = client.get(f"/projects/{project['id']}", headers=buyer["headers"]).json()
    assert after["status"] == "IN_PROGRESS"
    assert after["seller_id"] == seller["id"]
    bids = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"]).json()
    assert [b["status"] for b in bids] == ["ACCEPTED"]
    assert "project_completed" not in [n.event for n in sent_notices]
