from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import favourites as favourites_router
from api.routes import map_pins as map_router
from api.routes import venues as venues_router
from domain.models import Coordinate, Venue
from services.coordinate_resolution import VenueCoordinateResolver
from services.favourites import FavouritesStore
from services.geo_cache import CoordinateCacheStore, InMemoryKeyValueStore
from services.venue_catalog import VenueCatalog


class StaticGeocoder:
    def __init__(self, responses):
        self.responses = responses
        self.calls = 0

    def geocode(self, address):
        self.calls += 1
        return list(self.responses.get(address, []))


@pytest.fixture
def catalog():
    return VenueCatalog(
        [
            Venue(
                id="1",
                name="Café Morso (Bromsgrove)",
                address="12 High Street, Bromsgrove, B61 8HQ",
                deal="10% Off Food & Hot Drinks",
                online="www.cafemorso.co.uk",
                features=("Water bowls",),
            ),
            Venue(id="2", name="The Hop Pole", address="40 Friar Street, Droitwich Spa", lat=52.27, lng=-2.15),
            Venue(id="3", name="Paws & Pages"),
        ]
    )


@pytest.fixture
def store():
    return FavouritesStore()


@pytest.fixture
def client(catalog, store):
    app = FastAPI()
    app.include_router(venues_router.router, prefix="/venues")
    app.include_router(map_router.router, prefix="/map")
    app.include_router(favourites_router.router, prefix="/favourites")
    with patch.object(venues_router, "load_default_catalog", return_value=catalog), patch.object(
        map_router, "load_default_catalog", return_value=catalog
    ), patch.object(venues_router, "get_default_favourites_store", return_value=store), patch.object(
        favourites_router, "get_default_favourites_store", return_value=store
    ):
        yield TestClient(app)


def test_list_venues_and_search(client):
    resp = client.get("/venues")
    assert resp.status_code == 200
    data = resp.json()
    assert [v["id"] for v in data] == ["1", "2", "3"]
    assert data[0]["title"] == "Café Morso"
    assert data[0]["city"] == "Bromsgrove"
    assert data[0]["short"] == "10% Off Food & Hot Drinks"

    resp = client.get("/venues", params={"q": "droitwich"})
    assert [v["id"] for v in resp.json()] == ["2"]


def test_venue_detail_and_not_found(client):
    resp = client.get("/venues/1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Café Morso (Bromsgrove)"
    assert data["website_url"] == "https://www.cafemorso.co.uk"
    assert data["features"] == ["Water bowls"]
    assert data["is_favourite"] is False

    assert client.get("/venues/999").status_code == 404


def test_toggle_from_list_is_visible_in_detail(client, store):
    resp = client.post("/favourites/1/toggle")
    assert resp.status_code == 200
    assert resp.json() == {"id": "1", "is_favourite": True, "ids": ["1"]}

    assert client.get("/venues/1").json()["is_favourite"] is True
    listed = {v["id"]: v["is_favourite"] for v in client.get("/venues").json()}
    assert listed == {"1": True, "2": False, "3": False}
    assert store.is_favourite("1")

    resp = client.post("/favourites/1/toggle")
    assert resp.json()["is_favourite"] is False
    assert client.get("/favourites").json() == {"ids": []}


def test_replace_favourites_dedupes(client):
    resp = client.put("/favourites", json={"ids": ["a", "a", "b"]})
    assert resp.status_code == 200
    assert resp.json() == {"ids": ["a", "b"]}


def test_map_pins(client):
    geocoder = StaticGeocoder({"12 High Street, Bromsgrove, B61 8HQ": [Coordinate(52.33, -2.06)]})
    cache = CoordinateCacheStore(InMemoryKeyValueStore(), key="venueGeo:v1")
    resolver = VenueCoordinateResolver(cache, geocoder)

    with patch.object(map_router, "get_default_resolver", return_value=resolver):
        resp = client.get("/map/pins")
        again = client.get("/map/pins")

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_venues"] == 3
    assert [(p["id"], p["source"]) for p in data["pins"]] == [("1", "geocoded"), ("2", "inline")]
    assert data["bounds"] == [[52.27, -2.15], [52.33, -2.06]]
    assert data["center"][0] == pytest.approx(52.30)
    assert geocoder.calls == 1
    assert [p["id"] for p in again.json()["pins"]] == ["1", "2"]
    assert again.json()["pins"][0]["source"] == "cache"


def test_map_pins_empty_uses_default_center(client):
    resolver = VenueCoordinateResolver(
        CoordinateCacheStore(InMemoryKeyValueStore(), key="venueGeo:v1"), StaticGeocoder({})
    )
    empty = VenueCatalog([])
    with patch.object(map_router, "get_default_resolver", return_value=resolver), patch.object(
        map_router, "load_default_catalog", return_value=empty
    ):
        data = client.get("/map/pins").json()
    assert data["pins"] == []
    assert data["center"] == [52.335, -1.9]
    assert data["bounds"] is None


def test_app_health_and_routes_mounted():
    from api.main import app

    client = TestClient(app)
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "ok"
    paths = {route.path for route in app.routes}
    assert {"/venues", "/venues/{venue_id}", "/map/pins", "/favourites", "/favourites/{venue_id}/toggle"} <= paths
