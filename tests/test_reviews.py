from sqlalchemy import func, select

from haanein.models.links import Link


def _review_count(db, place_id: str) -> int:
    return db.scalar(
        select(func.count()).select_from(Link).where(Link.place_id == place_id, Link.link_type == "review")
    )


def test_review_requires_rating_and_content(client, db, register, create_place):
    _, _, headers = register("critic@example.com")
    place = create_place(headers)
    url = f"/api/places/{place['id']}/reviews"

    for body in ({"reviewContent": "Great coffee"}, {"rating": 4}, {"rating": 4, "reviewContent": "   "}, {}):
        r = client.post(url, json=body, headers=headers)
        assert r.status_code == 400, body
        assert r.json()["message"] == "Please provide rating and review content"

    assert _review_count(db, place["id"]) == 0


def test_review_rating_out_of_range(client, db, register, create_place):
    _, _, headers = register("range-critic@example.com")
    place = create_place(headers)
    r = client.post(f"/api/places/{place['id']}/reviews", json={"rating": 6, "reviewContent": "Too good"}, headers=headers)
    assert r.status_code == 400
    assert _review_count(db, place["id"]) == 0


def test_review_requires_token(client, register, create_place):
    _, _, headers = register("anon-owner@example.com")
    place = create_place(headers)
    r = client.post(f"/api/places/{place['id']}/reviews", json={"rating": 5, "reviewContent": "Hi"})
    assert r.status_code == 401


def test_review_on_missing_place(client, register):
    _, _, headers = register("lost@example.com")
    r = client.post("/api/places/missing/reviews", json={"rating": 5, "reviewContent": "Hi"}, headers=headers)
    assert r.status_code == 404


def test_review_updates_aggregates(client, register, create_place):
    _, _, owner = register("venue@example.com")
    _, _, first = register("first@example.com")
    _, _, second = register("second@example.com")
    place = create_place(owner)
    url = f"/api/places/{place['id']}/reviews"

    r = client.post(url, json={"rating": 5, "reviewContent": "Perfect"}, headers=first)
    assert r.status_code == 201, r.text
    body = r.json()["data"]
    assert body["review"]["linkType"] == "review"
    assert body["review"]["rating"] == 5
    assert body["place"]["rating"] == 5
    assert body["place"]["reviewCount"] == 1

    r = client.post(url, json={"rating": 2, "reviewContent": "Meh"}, headers=second)
    assert r.status_code == 201
    assert r.json()["data"]["place"]["rating"] == 3.5
    assert r.json()["data"]["place"]["reviewCount"] == 2

    fetched = client.get(f"/api/places/{place['id']}").json()["data"]["place"]
    assert fetched["rating"] == 3.5
    assert fetched["reviewCount"] == 2


def test_one_review_per_user_and_place(client, db, register, create_place):
    _, _, headers = register("twice@example.com")
    place = create_place(headers)
    url = f"/api/places/{place['id']}/reviews"

    assert client.post(url, json={"rating": 4, "reviewContent": "Good"}, headers=headers).status_code == 201
    r = client.post(url, json={"rating": 1, "reviewContent": "Changed my mind"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "You have already reviewed this place"
    assert _review_count(db, place["id"]) == 1


def test_list_reviews_newest_first(client, register, create_place):
    _, _, owner = register("lr-owner@example.com")
    _, _, a = register("lr-a@example.com")
    _, _, b = register("lr-b@example.com")
    place = create_place(owner)
    url = f"/api/places/{place['id']}/reviews"
    client.post(url, json={"rating": 3, "reviewContent": "first"}, headers=a)
    client.post(url, json={"rating": 4, "reviewContent": "second"}, headers=b)

    r = client.get(url)
    assert r.status_code == 200
    assert r.json()["results"] == 2
    assert [x["reviewContent"] for x in r.json()["data"]["reviews"]] == ["second", "first"]


def test_deleting_reviewer_recomputes_rating(client, register, create_place):
    _, _, owner = register("rc-owner@example.com")
    _, leaver, leaver_headers = register("leaver@example.com")
    _, _, stayer = register("stayer@example.com")
    place = create_place(owner)
    url = f"/api/places/{place['id']}/reviews"
    client.post(url, json={"rating": 1, "reviewContent": "bad"}, headers=leaver_headers)
    client.post(url, json={"rating": 5, "reviewContent": "great"}, headers=stayer)

    assert client.delete(f"/api/users/{leaver['id']}", headers=leaver_headers).status_code == 204

    fetched = client.get(f"/api/places/{place['id']}").json()["data"]["place"]
    assert fetched["rating"] == 5
    assert fetched["reviewCount"] == 1
