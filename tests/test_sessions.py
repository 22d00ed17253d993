import asyncio

from conftest import (
    FakePage, FakeResponse, LOCATION_INPUT, LOCATION_LABEL, LOCATION_SUGGESTION, PRODUCT_CARD,
    make_payload, make_snippet,
)

from scrapers.blinkit import BlinkitScraper
from scrapers.sessions import SessionRegistry


class FakeScraper(BlinkitScraper):
    stopped = []

    async def start(self):
        self.page = FakePage(
            present=[LOCATION_INPUT, LOCATION_SUGGESTION, LOCATION_LABEL, PRODUCT_CARD],
            texts={LOCATION_LABEL: "Kadri, Mangaluru 575006"},
            responses={"/s/?q=": [FakeResponse(
                "https://blinkit.com/v1/layout/search",
                make_payload(make_snippet(name="Onion", identity="1")),
            )]},
        )

    async def stop(self):
        FakeScraper.stopped.append(self)


def registry(config):
    FakeScraper.stopped = []
    return SessionRegistry(config=config, scraper_factory=FakeScraper)


def test_set_location_then_search(config):
    async def run():
        reg = registry(config)
        loc = await reg.handle("c1", {"type": "set-location", "service": "blinkit", "location": "575006"})
        res = await reg.handle("c1", {"type": "search", "service": "blinkit", "query": "onion"})
        return loc, res

    loc, res = asyncio.run(run())
    assert loc == {"type": "location-set", "svc": "blinkit", "loc": "575006"}
    assert res["type"] == "search-results" and res["q"] == "onion"
    assert [p["name"] for p in res["products"]] == ["Onion"]


def test_search_requires_location(config):
    reg = registry(config)
    event = asyncio.run(reg.handle("c1", {"type": "search", "service": "blinkit", "query": "onion"}))
    assert event["type"] == "error"
    assert "Location not set" in event["error"]


def test_unverified_location_is_an_error(config):
    reg = registry(config)
    event = asyncio.run(reg.handle("c1", {"type": "set-location", "service": "blinkit", "location": "560001"}))
    assert event["type"] == "error" and event["svc"] == "blinkit"
    assert not reg.get("c1", "blinkit").location_set


def test_rejects_bad_messages(config):
    reg = registry(config)
    assert asyncio.run(reg.handle("c1", {"type": "search", "service": "zepto", "query": "x"}))["error"] == \
        "Invalid service specified"
    assert asyncio.run(reg.handle("c1", {"type": "dance"}))["error"] == "Unknown message type: dance"
    assert asyncio.run(reg.handle("c1", {"type": "search", "service": "blinkit"}))["error"] == \
        "No search term provided"


def test_clients_are_isolated_and_torn_down(config):
    async def run():
        reg = registry(config)
        for cid in ("c1", "c2"):
            await reg.handle(cid, {"type": "set-location", "service": "blinkit", "location": "575006"})
        assert reg.get("c1", "blinkit").scraper is not reg.get("c2", "blinkit").scraper

        closed = await reg.handle("c1", {"type": "close-browser", "service": "blinkit"})
        assert closed == {"type": "browser-closed", "svc": "blinkit"}
        assert "c1" not in reg and "c2" in reg

        await reg.close_all()
        assert "c2" not in reg
        return reg

    asyncio.run(run())
    assert len(FakeScraper.stopped) == 2


def test_close_all_for_client(config):
    async def run():
        reg = registry(config)
        await reg.handle("c1", {"type": "set-location", "service": "blinkit", "location": "575006"})
        return await reg.handle("c1", {"type": "close-browser"}), reg

    event, reg = asyncio.run(run())
    assert event == {"type": "browser-closed", "svc": "all"}
    assert "c1" not in reg
