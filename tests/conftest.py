from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from scrapers.config import ScraperConfig


def make_snippet(name="Onion", identity="p1", price="₹40", mrp=None, variant="1 kg",
                 eta="8 mins", widget_type="product_card_snippet_type_2", **extra):
    data = {
        "identity": {"id": identity},
        "name": {"text": name},
        "normal_price": {"text": price},
        "variant": {"text": variant},
        "eta_tag": {"title": {"text": eta}},
        "image": {"url": f"https://cdn.example/{identity}.png"},
    }
    if mrp:
        data["mrp"] = {"text": mrp}
    data.update(extra)
    return {"widget_type": widget_type, "data": data}


def make_payload(*snippets):
    return {"response": {"snippets": list(snippets)}}


class FakeRequest:
    def __init__(self, resource_type="xhr", headers=None):
        self.resource_type = resource_type
        self.headers = headers or {"accept": "application/json"}


class FakeResponse:
    def __init__(self, url, body=None, resource_type="xhr", headers=None):
        self.url = url
        self.body = body
        self.request = FakeRequest(resource_type)
        self.headers = headers or {"content-type": "application/json"}

    async def json(self):
        if self.body is None:
            raise ValueError("not JSON")
        return self.body


class FakeKeyboard:
    def __init__(self):
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)


class FakeContext:
    def __init__(self, cookies=None):
        self._cookies = cookies or []

    async def cookies(self):
        return self._cookies


class FakePage:
    """
    Just enough of Playwright's Page for the scraper code.

    `present` selectors resolve immediately, anything else times out at once.
    `texts` maps selectors to text (or a callable taking the page).
    `responses` maps a URL substring to responses emitted when goto() hits it.
    """

    def __init__(self, present=(), texts=None, responses=None, evaluate_result=False,
                 goto_error: Optional[Exception] = None, cookies=None):
        self.url = "about:blank"
        self.present = set(present)
        self.texts: Dict[str, Any] = texts or {}
        self.responses: Dict[str, List[FakeResponse]] = responses or {}
        self.evaluate_result = evaluate_result
        self.goto_error = goto_error
        self.keyboard = FakeKeyboard()
        self.context = FakeContext(cookies)
        self.listeners: Dict[str, List[Callable]] = {}
        self.visited: List[str] = []
        self.wait_until: List[str] = []
        self.typed: List[str] = []
        self.clicked: List[str] = []
        self.closed = False

    async def goto(self, url, timeout=None, wait_until=None):
        self.visited.append(url)
        self.wait_until.append(wait_until)
        if self.goto_error:
            raise self.goto_error
        self.url = url
        for marker, responses in self.responses.items():
            if marker in url:
                for response in responses:
                    await self.emit("response", response)

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    async def emit(self, event, payload):
        for handler in list(self.listeners.get(event, [])):
            await handler(payload)

    async def wait_for_selector(self, selector, timeout=None, state=None):
        if selector not in self.present:
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")

    async def query_selector(self, selector):
        return object() if selector in self.present else None

    async def text_content(self, selector):
        text = self.texts.get(selector)
        return text(self) if callable(text) else text

    async def click(self, selector, timeout=None):
        self.clicked.append(selector)

    async def fill(self, selector, value):
        pass

    async def type(self, selector, text, delay=None):
        self.typed.append(text)

    async def wait_for_timeout(self, ms):
        pass

    async def wait_for_function(self, expression, arg=None, timeout=None):
        pass

    async def evaluate(self, expression):
        return self.evaluate_result

    async def close(self):
        self.closed = True


LOCATION_INPUT = '[name="select-locality"]'
LOCATION_SUGGESTION = '[class*="LocationSearchList"]'
LOCATION_LABEL = '[class*="LocationBar__Subtitle"]'
PRODUCT_CARD = 'div[role="button"][id]'


@pytest.fixture
def config():
    return replace(ScraperConfig(), response_timeout=50)
