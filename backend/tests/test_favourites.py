import pytest

from services import favourites as fav_module
from services.favourites import (
    FavouritesStore,
    SetFavourites,
    ToggleFavourite,
    favourites_reducer,
    get_default_favourites_store,
)


@pytest.mark.parametrize("state", [(), ("a",), ("a", "b"), ("b", "c", "a")])
@pytest.mark.parametrize("venue_id", ["a", "z"])
def test_toggle_twice_is_identity(state, venue_id):
    once = favourites_reducer(state, ToggleFavourite(venue_id))
    twice = favourites_reducer(once, ToggleFavourite(venue_id))
    assert set(twice) == set(state)
    assert len(twice) == len(state)
    assert (venue_id in once) == (venue_id not in state)


def test_toggle_appends_in_insertion_order():
    state = favourites_reducer((), ToggleFavourite("b"))
    state = favourites_reducer(state, ToggleFavourite("a"))
    assert state == ("b", "a")


def test_reducer_returns_new_value():
    state = ("a",)
    new_state = favourites_reducer(state, ToggleFavourite("b"))
    assert state == ("a",)
    assert new_state == ("a", "b")


def test_replace_all_dedupes():
    store = FavouritesStore()
    state = store.replace_all(["a", "a", "b"])
    assert len(state) == 2
    assert set(state) == {"a", "b"}
    assert state == ("a", "b")


def test_set_action_coerces_ids():
    assert favourites_reducer(("x",), SetFavourites((1, "1", 2))) == ("1", "2")


def test_store_toggle_and_query():
    store = FavouritesStore()
    assert store.is_favourite("venue-1") is False

    store.toggle("venue-1")
    assert store.is_favourite("venue-1") is True
    assert "venue-1" in store

    store.toggle("venue-1")
    assert store.is_favourite("venue-1") is False
    assert store.favourites == ()


def test_store_accepts_unknown_ids():
    store = FavouritesStore()
    assert store.toggle("not-in-catalog") == ("not-in-catalog",)
    assert store.toggle(42) == ("not-in-catalog", "42")
    assert store.is_favourite(42)


def test_seed_is_deduped():
    store = FavouritesStore(["a", "b", "a"])
    assert store.favourites == ("a", "b")


def test_shared_store_is_visible_to_all_readers():
    store = FavouritesStore()
    list_view_seen = []
    detail_view_seen = []
    store.subscribe(list_view_seen.append)
    store.subscribe(detail_view_seen.append)

    store.toggle("a")

    assert list_view_seen == [("a",)]
    assert detail_view_seen == [("a",)]


def test_failing_listener_does_not_block_others(caplog):
    store = FavouritesStore()
    seen = []

    def broken_view(state):
        raise RuntimeError("view crashed")

    store.subscribe(broken_view)
    store.subscribe(seen.append)

    assert store.toggle("a") == ("a",)
    assert store.favourites == ("a",)
    assert seen == [("a",)]
    assert "Favourites listener" in caplog.text


def test_unsubscribe_and_no_op_mutations():
    store = FavouritesStore(["a"])
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.replace_all(["a"])
    assert seen == []

    store.toggle("b")
    unsubscribe()
    store.toggle("c")
    assert seen == [("a", "b")]


def test_default_store_is_a_singleton(monkeypatch):
    monkeypatch.setattr(fav_module, "_default_favourites_store", None)
    monkeypatch.setattr(fav_module.settings, "FAVOURITES_SEED", ("seeded",))

    first = get_default_favourites_store()
    second = get_default_favourites_store()

    assert first is second
    assert first.is_favourite("seeded")
