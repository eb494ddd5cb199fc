from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

from _fakes import Delayed, FakePage, ScriptedGateway

from auto_a11y.gateway import AnthropicGateway
from auto_a11y.locator import A11yLocator, build_locator
from auto_a11y.memory import SnapshotCache
from auto_a11y.models import LocatorQuery, QueryKind, ResolutionSource, Strength
from auto_a11y.perception import Perception
from auto_a11y.prompts import LOCATOR_SYSTEM_PROMPT

EXAMPLE_PAGE = """
<html><body>
  <div>
    <h1>Example Domain</h1>
    <p>This domain is for use in illustrative examples in documents.</p>
    <p><a href="https://www.iana.org/domains/example">More information...</a></p>
  </div>
</body></html>
"""

HEADING_RESPONSE = '{"query":"getByRole","params":["heading","Example Domain"]}'


class LocatorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.cache = SnapshotCache(Path(self._tmp.name) / "snapshots.json")
        self.page = FakePage(EXAMPLE_PAGE)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_locator(self, gateway, timeout_ms=1000) -> A11yLocator:
        return A11yLocator(self.page, gateway, self.cache, Perception(), timeout_ms=timeout_ms)


class TestResolution(LocatorTestCase):
    async def test_main_heading_scenario(self) -> None:
        gateway = ScriptedGateway([HEADING_RESPONSE])
        locator = self.make_locator(gateway)

        resolution = await locator.resolve("the main heading")
        element = await locator.locate("the main heading")

        self.assertIs(resolution.source, ResolutionSource.PRIMARY)
        self.assertIs(resolution.query.query, QueryKind.ROLE)
        self.assertEqual(resolution.query.params, ["heading", "Example Domain"])
        self.assertEqual(await element.count(), 1)
        self.assertEqual(element.elements[0].get_text(strip=True), "Example Domain")

    async def test_prefilled_backend_with_trailing_explanation_resolves(self) -> None:
        messages = SimpleNamespace(kwargs=None)

        async def create(**kwargs):
            messages.kwargs = kwargs
            text = '"query": "getByRole", "params": ["heading","Example Domain"]}\n\nThe h1 is a heading.'
            return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])

        messages.create = create
        gateway = AnthropicGateway(SimpleNamespace(messages=messages), "claude-3-7")

        resolution = await self.make_locator(gateway).resolve("the main heading")

        self.assertIs(resolution.source, ResolutionSource.PRIMARY)
        self.assertEqual(resolution.query.params, ["heading", "Example Domain"])
        self.assertEqual(messages.kwargs["messages"][-1], {"role": "assistant", "content": "{"})

    async def test_primary_prompt_and_options(self) -> None:
        gateway = ScriptedGateway([HEADING_RESPONSE])
        await self.make_locator(gateway, timeout_ms=1234).resolve("the main heading")

        call = gateway.calls[0]
        self.assertEqual(call["system_prompt"], LOCATOR_SYSTEM_PROMPT)
        self.assertEqual(call["timeout_ms"], 1234)
        self.assertEqual(call["schema"], LocatorQuery.model_json_schema())
        self.assertIn("Description: the main heading", call["prompt"])
        self.assertIn("<h1>Example Domain</h1>", call["prompt"])
        self.assertIn("getByTestId - LOWEST PRIORITY", call["prompt"])

    async def test_success_is_persisted(self) -> None:
        await self.make_locator(ScriptedGateway([HEADING_RESPONSE])).resolve("the main heading")
        self.assertEqual(self.cache.get("the main heading").params, ["heading", "Example Domain"])

    async def test_cache_hit_skips_gateway(self) -> None:
        self.cache.write("the main heading", LocatorQuery(query=QueryKind.ROLE, params=["heading", "Example Domain"]))
        gateway = ScriptedGateway([])

        resolution = await self.make_locator(gateway).resolve("the main heading")

        self.assertIs(resolution.source, ResolutionSource.CACHE)
        self.assertEqual(gateway.calls, [])
        self.assertEqual(self.page.content_calls, 0)

    async def test_stale_entry_is_re_resolved_and_overwritten(self) -> None:
        self.cache.write("the main heading", LocatorQuery(query=QueryKind.TEXT, params=["Welcome back"]))
        gateway = ScriptedGateway([HEADING_RESPONSE])

        resolution = await self.make_locator(gateway).resolve("the main heading")

        self.assertIs(resolution.source, ResolutionSource.PRIMARY)
        self.assertEqual(len(gateway.calls), 1)
        self.assertEqual(self.cache.get("the main heading").query, QueryKind.ROLE)

    async def test_stale_entry_survives_total_failure(self) -> None:
        stale = LocatorQuery(query=QueryKind.TEXT, params=["Welcome back"])
        self.cache.write("the main heading", stale)

        resolution = await self.make_locator(ScriptedGateway(default=RuntimeError("down"))).resolve("the main heading")

        self.assertIs(resolution.source, ResolutionSource.LITERAL)
        self.assertEqual(self.cache.get("the main heading"), stale)

    async def test_invalid_role_degrades_to_simplified_attempt(self) -> None:
        gateway = ScriptedGateway([
            '{"query":"getByRole","params":["paragraph"]}',
            '{"query":"getByText","params":["This domain is for use in illustrative examples in documents."]}',
        ])

        resolution = await self.make_locator(gateway).resolve("the main paragraph")

        self.assertIs(resolution.source, ResolutionSource.SIMPLIFIED)
        self.assertIs(resolution.query.query, QueryKind.TEXT)
        self.assertEqual(len(gateway.calls), 2)
        degraded = gateway.calls[1]
        self.assertIsNone(degraded["timeout_ms"])
        self.assertIn("Prefer, in order: getByRole", degraded["prompt"])
        self.assertNotIn("<div", degraded["prompt"])
        self.assertEqual(self.cache.get("the main paragraph").query, QueryKind.TEXT)

    async def test_timeout_degrades(self) -> None:
        gateway = ScriptedGateway([Delayed(0.5, HEADING_RESPONSE), HEADING_RESPONSE])

        resolution = await self.make_locator(gateway, timeout_ms=10).resolve("the main heading")

        self.assertIs(resolution.source, ResolutionSource.SIMPLIFIED)
        self.assertEqual(resolution.query.params, ["heading", "Example Domain"])

    async def test_always_throwing_gateway_falls_back_to_text(self) -> None:
        gateway = ScriptedGateway(default=ConnectionError("refused"))

        with self.assertLogs("auto_a11y.locator", level="WARNING"):
            resolution = await self.make_locator(gateway).resolve("link about more information")

        self.assertIs(resolution.source, ResolutionSource.LITERAL)
        self.assertIs(resolution.query.query, QueryKind.TEXT)
        self.assertEqual(resolution.query.params, ["link about more information"])
        self.assertEqual(len(gateway.calls), 2)
        self.assertEqual(self.cache.read(), {})

    async def test_always_timing_out_gateway_falls_back_to_text(self) -> None:
        gateway = ScriptedGateway([Delayed(0.5, HEADING_RESPONSE), Delayed(0.0, TimeoutError("slow"))])

        resolution = await self.make_locator(gateway, timeout_ms=10).resolve("More information...")
        element = await self.make_locator(gateway).locate("More information...")

        self.assertIs(resolution.source, ResolutionSource.LITERAL)
        self.assertEqual(await element.count(), 1)

    async def test_unparseable_responses_fall_back_to_text(self) -> None:
        gateway = ScriptedGateway(["getByRole: heading, Example Domain", "I cannot help with that."])
        resolution = await self.make_locator(gateway).resolve("the main heading")
        self.assertIs(resolution.source, ResolutionSource.LITERAL)

    async def test_execute_prompt_uses_gateway(self) -> None:
        gateway = ScriptedGateway(["hello"])
        self.assertEqual(await self.make_locator(gateway).execute_prompt("hi", system_prompt="sys"), "hello")
        self.assertEqual(gateway.calls[0]["system_prompt"], "sys")


class TestBuildLocator(unittest.TestCase):
    def test_dispatches_each_query_kind(self) -> None:
        page = mock.Mock()
        build_locator(page, LocatorQuery(query=QueryKind.ROLE, params=["button", "Submit"]))
        page.get_by_role.assert_called_with("button", name="Submit")
        build_locator(page, LocatorQuery(query=QueryKind.ROLE, params=["main"]))
        page.get_by_role.assert_called_with("main")
        build_locator(page, LocatorQuery(query=QueryKind.TEXT, params=["Yes, you can"]))
        page.get_by_text.assert_called_with("Yes, you can", exact=False)
        build_locator(page, LocatorQuery(query=QueryKind.LABEL, params=["Email"]))
        page.get_by_label.assert_called_with("Email")
        build_locator(page, LocatorQuery(query=QueryKind.PLACEHOLDER, params=["Name"]))
        page.get_by_placeholder.assert_called_with("Name")
        build_locator(page, LocatorQuery(query=QueryKind.TEST_ID, params=["login-form"]))
        page.get_by_test_id.assert_called_with("login-form")
        build_locator(page, LocatorQuery(query=QueryKind.ALT_TEXT, params=["Logo"]))
        page.get_by_alt_text.assert_called_with("Logo")


class TestPerception(unittest.IsolatedAsyncioTestCase):
    async def test_reuses_representation_while_snapshot_is_unchanged(self) -> None:
        page = FakePage(EXAMPLE_PAGE)
        perception = Perception()
        with mock.patch("auto_a11y.perception.simplify", wraps=lambda html, strength: f"{strength.value}") as simplify:
            self.assertEqual(await perception.snapshot(page), "standard")
            self.assertEqual(await perception.snapshot(page), "standard")
            self.assertEqual(await perception.snapshot(page, Strength.AGGRESSIVE), "aggressive")
            self.assertEqual(simplify.call_count, 2)

            page.set_content("<html><body><h1>Changed</h1></body></html>")
            await perception.snapshot(page)
            self.assertEqual(simplify.call_count, 3)
            self.assertEqual(perception.context.raw_html, page.html)
            self.assertEqual(list(perception.context.simplified), [Strength.STANDARD])

    async def test_simplify_html_disabled_keeps_markup(self) -> None:
        page = FakePage('<html><body><div class="x"><h1>Hi</h1></div><script>x()</script></body></html>')
        perception = Perception(simplify_html=False)
        standard = await perception.snapshot(page, Strength.STANDARD)
        aggressive = await perception.snapshot(page, Strength.AGGRESSIVE)
        self.assertIn('class="x"', standard)
        self.assertNotIn("<script", standard)
        self.assertNotIn("class=", aggressive)


if __name__ == "__main__":
    unittest.main()
