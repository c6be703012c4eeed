import pytest


def test_buyer_creates_pending_project(api, buyer):
    project = api.create_project(buyer, title="Logo design")
    assert project["status"] == "PENDING"
    assert project["seller_id"] is None
    assert project["buyer_id"] == buyer["id"]
    assert project["budget"] == {"min": 100.0, "max": 200.0}
    assert project["buyer"]["name"] == "Bob"
    assert project["files"] == []


def test_seller_cannot_create_project(client, seller):
    res = client.post(
        "/projects",
        json={
            "title": "x",
            "description": "y",
            "budget": {"min": 1, "max": 2},
            "deadline": "2030-01-01T00:00:00Z",
        },
        headers=seller["headers"],
    )
    assert res.status_code == 403
    assert res.json()["message"] == "Only buyers can create projects"


@pytest.mark.parametrize(
    "payload",
    [
        {"description": "y", "budget": {"min": 1, "max": 2}, "deadline": "2030-01-01T00:00:00Z"},
        {"title": "x", "description": "y", "deadline": "2030-01-01T00:00:00Z"},
        {"title": "x", "description": "y", "budget": {"min": 1, "max": 2}},
        {"title": "x", "description": "y", "budget": {"min": 5, "max": 2}, "deadline": "2030-01-01T00:00:00Z"},
    ],
)
def test_create_project_validation(client, buyer, payload):
    res = client.post("/projects", json=payload, headers=buyer["headers"])
    assert res.status_code == 400
    assert res.json()["error"] is True


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/projects"),
        ("post", "/projects"),
        ("get", "/projects/some-id"),
        ("put", "/projects/some-id"),
        ("delete", "/projects/some-id"),
        ("get", "/projects/some-id/bids"),
        ("post", "/projects/some-id/select-bid"),
        ("post", "/projects/some-id/complete"),
        ("post", "/projects/some-id/files"),
        ("get", "/bids/seller"),
        ("post", "/bids"),
        ("get", "/bids/some-id"),
        ("put", "/bids/some-id"),
        ("delete", "/bids/some-id"),
    ],
)
def test_protected_routes_require_token(client, method, path):
    res = getattr(client, method)(path)
    assert res.status_code == 401
    assert res.json()["error"] is True


def test_buyer_lists_only_own_projects_with_bid_count(client, api, buyer, seller):
    other_buyer = api.register("Olga", "BUYER")
    mine = api.create_project(buyer, title="Mine")
    api.create_project(other_buyer, title="Theirs")
    api.create_bid(seller, mine["id"])

    res = client.get("/projects", headers=buyer["headers"])
    assert res.status_code == 200
    projects = res.json()
    assert [p["id"] for p in projects] == [mine["id"]]
    assert projects[0]["bid_count"] == 1


def test_seller_sees_open_projects_and_own_assignments(client, api, buyer, seller):
    rival = api.register("Rick", "SELLER")
    open_project = api.create_project(buyer, title="Open")
    won = api.create_project(buyer, title="Won")
    lost = api.create_project(buyer, title="Lost")

    bid_won = api.create_bid(seller, won["id"])
    bid_lost = api.create_bid(rival, lost["id"])
    assert api.select_bid(buyer, won["id"], bid_won).status_code == 200
    assert api.select_bid(buyer, lost["id"], bid_lost).status_code == 200

    res = client.get("/projects", headers=seller["headers"])
    ids = [p["id"] for p in res.json()]
    assert sorted(ids) == sorted([open_project["id"], won["id"]])
    assert len(ids) == len(set(ids))


def test_list_filters_and_sort(client, api, buyer):
    api.create_project(buyer, title="Mobile app", budget={"min": 500, "max": 900})
    api.create_project(buyer, title="Website", budget={"min": 100, "max": 300})

    res = client.get("/projects", params={"search": "mobile"}, headers=buyer["headers"])
    assert [p["title"] for p in res.json()] == ["Mobile app"]

    res = client.get("/projects", params={"sort": "budget_min_asc"}, headers=buyer["headers"])
    assert [p["title"] for p in res.json()] == ["Website", "Mobile app"]

    res = client.get("/projects", params={"status": "completed"}, headers=buyer["headers"])
    assert res.json() == []


@pytest.mark.parametrize("term", ["_", "%", "a_p"])
def test_search_matches_wildcard_characters_literally(client, api, buyer, term):
    api.create_project(buyer, title="Mobile app", description="iOS and Android")
    api.create_project(buyer, title="Website", description="Marketing site")

    res = client.get("/projects", params={"search": term}, headers=buyer["headers"])
    assert res.status_code == 200
    assert res.json() == []


def test_search_finds_literal_percent_sign(client, api, buyer):
    api.create_project(buyer, title="Discount banner", description="Show 50% off on the homepage")
    api.create_project(buyer, title="Website", description="Marketing site")

    res = client.get("/projects", params={"search": "50%"}, headers=buyer["headers"])
    assert [p["title"] for p in res.json()] == ["Discount banner"]


@pytest.mark.parametrize("params", [{"sort": "password_desc"}, {"sort": "title_sideways"}, {"status": "OPEN"}])
def test_list_rejects_unknown_filters(client, buyer, params):
    res = client.get("/projects", params=params, headers=buyer["headers"])
    assert res.status_code == 400


def test_get_project_by_id(client, api, buyer, seller):
    project = api.create_project(buyer)
    res = client.get(f"/projects/{project['id']}", headers=seller["headers"])
    assert res.status_code == 200
    assert res.json()["title"] == project["title"]

    missing = client.get("/projects/does-not-exist", headers=seller["headers"])
    assert missing.status_code == 404


def test_partial_update_changes_only_given_fields(client, api, buyer):
    project = api.create_project(buyer, title="Old title")
    res = client.put(
        f"/projects/{project['id']}",
        json={"title": "New title"},
        headers=buyer["headers"],
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "New title"
    assert body["description"] == project["description"]
    assert body["budget"] == project["budget"]

    res = client.put(
        f"/projects/{project['id']}",
        json={"budget": {"min": 50, "max": 75}},
        headers=buyer["headers"],
    )
    assert res.json()["budget"] == {"min": 50.0, "max": 75.0}
    assert res.json()["title"] == "New title"


def test_only_owner_can_update_or_delete(client, api, buyer):
    intruder = api.register("Ivan", "BUYER")
    project = api.create_project(buyer)

    res = client.put(f"/projects/{project['id']}", json={"title": "Hacked"}, headers=intruder["headers"])
    assert res.status_code == 403
    res = client.delete(f"/projects/{project['id']}", headers=intruder["headers"])
    assert res.status_code == 403

    res = client.put("/projects/missing", json={"title": "x"}, headers=buyer["headers"])
    assert res.status_code == 404


def test_delete_cascades_to_bids(client, api, buyer, seller):
    project = api.create_project(buyer)
    bid = api.create_bid(seller, project["id"])

    res = client.delete(f"/projects/{project['id']}", headers=buyer["headers"])
    assert res.status_code == 200
    assert res.json() == {"message": "Project deleted successfully"}

    assert client.get(f"/projects/{project['id']}", headers=buyer["headers"]).status_code == 404
    assert client.get(f"/bids/{bid['id']}", headers=seller["headers"]).status_code == 404
    assert client.get("/bids/seller", headers=seller["headers"]).json() == []


def test_project_bids_visible_to_owner_with_emails(client, api, buyer, seller):
    project = api.create_project(buyer)
    api.create_bid(seller, project["id"])

    res = client.get(f"/projects/{project['id']}/bids", headers=buyer["headers"])
    assert res.status_code == 200
    bids = res.json()
    assert len(bids) == 1
    assert bids[0]["seller"]["email"] == seller["email"]


def test_project_bids_hide_emails_from_bidding_sellers(client, api, buyer, seller):
    rival = api.register("Rick", "SELLER")
    project = api.create_project(buyer)
    api.create_bid(seller, project["id"])
    api.create_bid(rival, project["id"], amount=120)

    res = client.get(f"/projects/{project['id']}/bids", headers=seller["headers"])
    assert res.status_code == 200
    bids = res.json()
    assert len(bids) == 2
    assert all(bid["seller"]["email"] is None for bid in bids)
    assert {bid["seller"]["name"] for bid in bids} == {"Sally", "Rick"}


def test_project_bids_forbidden_for_outsiders(client, api, buyer, seller):
    other_buyer = api.register("Olga", "BUYER")
    project = api.create_project(buyer)

    res = client.get(f"/projects/{project['id']}/bids", headers=seller["headers"])
    assert res.status_code == 403
    res = client.get(f"/projects/{project['id']}/bids", headers=other_buyer["headers"])
    assert res.status_code == 403
    res = client.get("/projects/missing/bids", headers=buyer["headers"])
    assert res.status_code == 404
