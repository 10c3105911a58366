import pytest

from webglue import quizlet
from webglue.errors import ParseError

from conftest import FakeResponse


def _item(item_id, rank, term, definition, image=None):
    def_media = [{"type": 1, "plainText": definition}]
    if image:
        def_media.append({"type": 2, "url": image})
    return {
        "id": item_id,
        "rank": rank,
        "cardSides": [
            {"sideId": 0, "label": "word", "media": [{"type": 1, "plainText": term}]},
            {"sideId": 1, "label": "definition", "media": def_media},
        ],
    }


def _page(items, token=None):
    return {"responses": [{"models": {"studiableItem": items}, "paging": {"total": 3, "token": token}}]}


def test_set_id_from_url():
    assert quizlet.set_id_from_url("123456") == "123456"
    assert quizlet.set_id_from_url("https://quizlet.com/123456789/french-verbs-flash-cards/") == "123456789"
    assert quizlet.set_id_from_url("https://quizlet.com/gb/555/x/") == "555"
    with pytest.raises(ValueError):
        quizlet.set_id_from_url("https://example.com/cards")


def test_quizlet_cards_follows_paging_token(http):
    http.add(
        FakeResponse(200, json_data=_page([_item(1, 0, "chat", "cat"), _item(2, 1, "chien", "dog")], token="tok")),
        FakeResponse(200, json_data=_page([_item(3, 2, "oiseau", "bird", image="https://img/bird.jpg")])),
    )
    cards = quizlet.quizlet_cards("https://quizlet.com/42/animals/", per_page=2)
    assert [(c.term, c.definition) for c in cards] == [("chat", "cat"), ("chien", "dog"), ("oiseau", "bird")]
    assert cards[2].image_url == "https://img/bird.jpg"
    first, second = http.calls
    assert first["params"]["filters[studiableContainerId]"] == "42"
    assert first["params"]["page"] == 1
    assert "pagingToken" not in first["params"]
    assert second["params"]["pagingToken"] == "tok"
    assert second["params"]["page"] == 2


def test_quizlet_cards_stops_on_short_page(http):
    http.add(FakeResponse(200, json_data=_page([_item(1, 0, "a", "b")], token="tok")))
    cards = quizlet.quizlet_cards("7", per_page=500)
    assert len(cards) == 1
    assert len(http.calls) == 1


def test_quizlet_cards_bad_shape(http):
    http.add(FakeResponse(200, json_data={"responses": []}))
    with pytest.raises(ParseError):
        quizlet.quizlet_cards("7")
