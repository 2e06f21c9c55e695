"""Testes de ponta a ponta do controlador montado pelo container."""
from __future__ import annotations

import asyncio
from typing import Callable

import httpx

from nomeador.container import build_container
from nomeador.infrastructure import InMemoryDurableStore, LiveDocument

NOW = 1_700_000_000.0

PAGE = """
<html><body>
  <div class="comment">
    <a class="author" href="/octocat">octocat</a> commented
    <p>Thanks <a class="user-mention" href="/torvalds">@torvalds</a>!</p>
  </div>
</body></html>
"""


class _Api:
    """API falsa com nomes mutáveis e contador de chamadas."""

    def __init__(self, names: dict[str, str]) -> None:
        self.names = names
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        handle = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(handle)
        if handle not in self.names:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"login": handle, "name": self.names[handle]})


def _container(document: LiveDocument, api: Callable[[httpx.Request], httpx.Response], initial: dict | None = None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return build_container(
        document,
        store=InMemoryDurableStore(initial or {}),
        client=client,
        api_url="https://api.test",
        batch_size=5,
        debounce=0.01,
        clock=lambda: NOW,
    )


def _texts(document: LiveDocument) -> list[str]:
    return [node.get_text() for node in document.select("a")]


def test_start_resolves_page_and_toggle_is_reversible() -> None:
    document = LiveDocument(PAGE)
    api = _Api({"torvalds": "Linus Torvalds"})
    initial = {"handle:octocat": {"label": "The Octocat", "timestamp": NOW}}

    async def scenario():
        container = _container(document, api, initial)
        controller = container.controller
        await controller.start()
        await controller.idle()
        enabled_html = document.render()
        enabled_texts = _texts(document)

        await controller.set_enabled(False)
        disabled_texts = _texts(document)
        title_while_disabled = document.select("a")[0].get("title")

        await controller.set_enabled(True)
        await controller.idle()
        await container.aclose()
        return enabled_html, enabled_texts, disabled_texts, title_while_disabled, container

    enabled_html, enabled_texts, disabled_texts, title, container = asyncio.run(scenario())

    assert enabled_texts == ["The Octocat", "Linus Torvalds"]
    assert disabled_texts == ["octocat", "@torvalds"]
    assert title is None
    assert document.render() == enabled_html
    assert api.calls == ["torvalds"]
    assert asyncio.run(container.store.get("enabled")) is True


def test_rapid_toggles_settle_on_last_value() -> None:
    document = LiveDocument(PAGE)
    api = _Api({"octocat": "The Octocat", "torvalds": "Linus Torvalds"})

    async def scenario():
        container = _container(document, api)
        controller = container.controller
        await controller.start()
        await asyncio.gather(
            controller.set_enabled(False),
            controller.set_enabled(True),
            controller.set_enabled(False),
        )
        await controller.idle()
        await container.aclose()
        return controller.get_state(), await container.store.get("enabled")

    state, stored = asyncio.run(scenario())

    assert state == {"enabled": False}
    assert stored is False
    assert _texts(document) == ["octocat", "@torvalds"]


def test_content_added_while_disabled_is_resolved_after_enabling() -> None:
    document = LiveDocument("<html><body><main></main></body></html>")
    api = _Api({"defunkt": "Chris Wanstrath"})

    async def scenario():
        container = _container(document, api, {"enabled": False})
        controller = container.controller
        await controller.start()
        document.insert_html('<a class="author" href="/defunkt">defunkt</a>')
        await controller.idle()
        before = (_texts(document), len(container.context.markers), list(api.calls))

        await controller.set_enabled(True)
        await controller.idle()
        await container.aclose()
        return before

    before = asyncio.run(scenario())

    assert before == (["defunkt"], 1, [])
    assert _texts(document) == ["Chris Wanstrath"]


def test_refresh_cache_reclassifies_and_resolves_again() -> None:
    document = LiveDocument(PAGE)
    api = _Api({"octocat": "The Octocat", "torvalds": "Linus Torvalds"})
    initial = {"githubToken": "ghp_secret", "enabled": True}

    async def scenario():
        container = _container(document, api, initial)
        controller = container.controller
        await controller.start()
        await controller.idle()
        first = _texts(document)

        api.names["octocat"] = "Mona Octocat"
        reply = await controller.handle_message({"action": "refreshCache"})
        await controller.idle()
        await container.aclose()
        return first, reply, await container.store.items()

    first, reply, stored = asyncio.run(scenario())

    assert first == ["The Octocat", "Linus Torvalds"]
    assert reply == {"success": True}
    assert _texts(document) == ["Mona Octocat", "Linus Torvalds"]
    assert sorted(api.calls) == ["octocat", "octocat", "torvalds", "torvalds"]
    assert stored["githubToken"] == "ghp_secret"
    assert stored["handle:octocat"]["label"] == "Mona Octocat"


def test_handle_message_replies() -> None:
    document = LiveDocument("<body></body>")
    api = _Api({})

    async def scenario():
        container = _container(document, api)
        controller = container.controller
        await controller.start()
        replies = [
            await controller.handle_message({"action": "getState"}),
            await controller.handle_message({"action": "toggle", "enabled": False}),
            await controller.handle_message({"action": "getState"}),
            await controller.handle_message({"action": "explode"}),
            await controller.handle_message({"action": "toggle"}),
        ]
        await container.aclose()
        return replies

    replies = asyncio.run(scenario())

    assert replies[0] == {"enabled": True}
    assert replies[1] == {"success": True}
    assert replies[2] == {"enabled": False}
    assert replies[3]["success"] is False and replies[3]["error"]
    assert replies[4]["success"] is False


def test_failed_revalidation_keeps_the_known_name() -> None:
    document = LiveDocument('<body><a class="author" href="/octocat">octocat</a></body>')
    stale_at = NOW - 25 * 60 * 60
    initial = {"handle:octocat": {"label": "The Octocat", "timestamp": stale_at}}
    calls: list[str] = []

    def rate_limited(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(403, json={"message": "API rate limit exceeded"})

    async def scenario():
        container = _container(document, rate_limited, initial)
        await container.controller.start()
        await container.controller.idle()
        await container.aclose()
        return await container.store.get("handle:octocat")

    stored = asyncio.run(scenario())

    assert calls == ["/users/octocat"]
    assert _texts(document) == ["The Octocat"]
    assert document.select("a")[0]["title"] == "@octocat"
    assert stored == {"label": "The Octocat", "timestamp": stale_at}
