"""Tests for the places text search client."""

import asyncio

import httpx
import pytest

from aura.core.modules.location.places import PlacesClient

URL = "https://places.test/textsearch/json"


def client_for(handler) -> PlacesClient:
    return PlacesClient("secret", URL, transport=httpx.MockTransport(handler))


class TestTextSearch:
    def test_parses_results_and_sends_parameters(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [
                        {
                            "name": "Kopi Z",
                            "formatted_address": "Jalan Z, Kuala Lumpur",
                            "geometry": {"location": {"lat": 3.16, "lng": 101.72}},
                        },
                        {"name": "No Address", "geometry": {"location": {"lat": 3.1, "lng": 101.6}}},
                    ],
                },
            )

        async def scenario():
            client = client_for(handler)
            try:
                return await client.text_search("kopi", 3.15, 101.71)
            finally:
                await client.aclose()

        places = asyncio.run(scenario())
        assert [(place.name, place.address) for place in places] == [
            ("Kopi Z", "Jalan Z, Kuala Lumpur"),
            ("No Address", ""),
        ]
        params = requests[0].url.params
        assert params["query"] == "kopi"
        assert params["location"] == "3.15,101.71"
        assert params["key"] == "secret"

    def test_error_status_raises(self):
        async def scenario():
            client = client_for(lambda request: httpx.Response(500))
            try:
                await client.text_search("kopi", 3.15, 101.71)
            finally:
                await client.aclose()

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(scenario())
