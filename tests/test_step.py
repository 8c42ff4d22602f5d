"""Tests for Step — delivery, pagination controls and the input collection state machine."""
import asyncio
import pytest

from models.schemas import SplitOptions
from channels.base import ChannelError
from channels.pagination import NEXT, PREVIOUS
from config.settings import MenuConfig
from menus.directives import Ok, Retry, SetText
from menus.services import MenuServices
from menus.step import Step

from tests.conftest import CHANNEL, USER


def texts(adapter):
    return [m.content for m in adapter.transcript(CHANNEL)]


class TestDelivery:
    @pytest.mark.asyncio
    async def test_display_only_resolves_immediately(self, services, adapter, trigger):
        step = Step(services, trigger, text="Hello").set_title("Info").add_option("a", "b")
        outcome = await step.send()
        assert outcome.passover is None
        assert outcome.data is None
        sent = adapter.transcript(CHANNEL)
        assert len(sent) == 1
        assert sent[0].content == "Hello"
        assert sent[0].page.title == "Info"
        assert not services.busy.is_busy(CHANNEL)
        assert not adapter.is_listening(CHANNEL)
        assert len(outcome.cleanup) == 1

    @pytest.mark.asyncio
    async def test_text_list_sends_each_and_page_on_last(self, services, adapter, trigger):
        step = Step(services, trigger, text=["one", "two", "three"]).set_title("T")
        await step.send()
        sent = adapter.transcript(CHANNEL)
        assert [m.content for m in sent] == ["one", "two", "three"]
        assert sent[0].page is None and sent[1].page is None
        assert sent[2].page.title == "T"

    @pytest.mark.asyncio
    async def test_split_options(self, services, adapter, trigger):
        text = "\n".join(["line"] * 10)
        step = Step(services, trigger, text=text, split_options=SplitOptions(max_length=20))
        outcome = await step.send()
        sent = adapter.transcript(CHANNEL)
        assert len(sent) > 1
        assert all(len(m.content) <= 20 for m in sent)
        assert len(outcome.cleanup) == len(sent)

    @pytest.mark.asyncio
    async def test_pagination_controls_attached(self, services, adapter, trigger):
        step = Step(services, trigger, max_per_page=1)
        step.add_option("a", "x").add_option("b", "y")
        await step.send()
        message = adapter.transcript(CHANNEL)[0]
        assert adapter.reactions(message.id) == [PREVIOUS, NEXT]
        assert services.page_controls.get(message.id) is not None

    @pytest.mark.asyncio
    async def test_single_page_has_no_controls(self, services, adapter, trigger):
        step = Step(services, trigger).add_option("a", "x")
        await step.send()
        message = adapter.transcript(CHANNEL)[0]
        assert adapter.reactions(message.id) == []
        assert services.page_controls.count == 0

    @pytest.mark.asyncio
    async def test_no_controls_without_permission(self, services, adapter, trigger):
        adapter.set_reaction_permission(CHANNEL, False)
        step = Step(services, trigger, max_per_page=1)
        step.add_option("a", "x").add_option("b", "y")
        await step.send()
        message = adapter.transcript(CHANNEL)[0]
        assert adapter.reactions(message.id) == []
        assert "options per page" in message.page.footer.text

    @pytest.mark.asyncio
    async def test_capacity_defaults_to_config(self, adapter, catalog, trigger):
        services = MenuServices(
            adapter=adapter,
            config=MenuConfig(max_per_page=2),
            catalog=catalog,
            default_locale="en-US",
        )
        assert Step(services, trigger).max_per_page == 2
        assert Step(services, trigger, max_per_page=4).max_per_page == 4

    @pytest.mark.asyncio
    async def test_delivery_failure_propagates(self, services, adapter, trigger):
        adapter.set_read_only(CHANNEL)
        step = Step(services, trigger, text="hi")
        with pytest.raises(ChannelError) as exc:
            await step.send()
        assert exc.value.code == 50013


class TestCollection:
    @pytest.mark.asyncio
    async def test_handler_success(self, services, adapter, trigger, say):
        seen = []

        def handler(message, data):
            seen.append((message.content, dict(data)))
            return Ok({"choice": message.content})

        say("2")
        step = Step(services, trigger, handler, text="Pick")
        outcome = await step.send({"prior": True})
        assert outcome.data == {"choice": "2"}
        assert seen == [("2", {"prior": True})]
        assert not services.busy.is_busy(CHANNEL)
        assert len(outcome.cleanup) == 2

    @pytest.mark.asyncio
    async def test_async_handler_and_mapping_result(self, services, trigger, say):
        async def handler(message, data):
            await asyncio.sleep(0)
            return {"value": 1, "next": {"text": "later"}}

        say("go")
        outcome = await Step(services, trigger, handler, text="Q").send()
        assert outcome.data == {"value": 1}
        assert outcome.passover.directives == [SetText("later")]

    @pytest.mark.asyncio
    async def test_none_result_threads_empty_data(self, services, trigger, say):
        say("go")
        outcome = await Step(services, trigger, lambda m, d: None, text="Q").send()
        assert outcome.passover is not None
        assert outcome.data == {}

    @pytest.mark.asyncio
    async def test_channel_busy_while_collecting(self, services, trigger, say):
        states = []

        def handler(message, data):
            states.append(services.busy.is_busy(CHANNEL))
            return Ok()

        say("x")
        await Step(services, trigger, handler, text="Q").send()
        assert states == [True]
        assert not services.busy.is_busy(CHANNEL)

    @pytest.mark.asyncio
    async def test_ignores_other_authors(self, services, trigger, say):
        calls = []
        say("intrusion", author_id="someone-else")
        say("mine")
        step = Step(services, trigger, lambda m, d: calls.append(m.author_id) or Ok(), text="Q")
        await step.send()
        assert calls == [USER]

    @pytest.mark.asyncio
    async def test_retry_keeps_collecting(self, services, adapter, trigger, say):
        calls = []

        def handler(message, data):
            calls.append(message.content)
            if not message.content.isdigit():
                return Retry("Numbers only, please.")
            return Ok({"n": int(message.content)})

        say("abc")
        say("42")
        outcome = await Step(services, trigger, handler, text="Number?").send()
        assert calls == ["abc", "42"]
        assert outcome.data == {"n": 42}
        assert "Numbers only, please." in texts(adapter)

    @pytest.mark.asyncio
    async def test_retry_default_message(self, services, adapter, trigger, say):
        answers = iter([Retry(), Ok()])
        say("bad")
        say("good")
        await Step(services, trigger, lambda m, d: next(answers), text="Q").send()
        assert any(t.startswith("That is not a valid choice") for t in texts(adapter))

    @pytest.mark.asyncio
    async def test_exit_standalone(self, services, adapter, trigger, say):
        calls = []
        say("EXIT")
        outcome = await Step(services, trigger, lambda m, d: calls.append(m), text="Q").send()
        assert outcome.passover is None
        assert calls == []
        assert "Menu closed." in texts(adapter)
        await asyncio.sleep(0.05)
        assert "Menu closed." not in texts(adapter)
        assert not services.busy.is_busy(CHANNEL)

    @pytest.mark.asyncio
    async def test_fatal_handler_error_propagates(self, services, adapter, trigger, say):
        def handler(message, data):
            raise RuntimeError("handler exploded")

        say("x")
        with pytest.raises(RuntimeError, match="handler exploded"):
            await Step(services, trigger, handler, text="Q").send()
        assert not services.busy.is_busy(CHANNEL)
        assert texts(adapter) == ["Q"]

    @pytest.mark.asyncio
    async def test_timeout_resolves_without_data(self, adapter, catalog, trigger):
        services = MenuServices(
            adapter=adapter,
            config=MenuConfig(collect_timeout_seconds=0.05),
            catalog=catalog,
            default_locale="en-US",
        )
        outcome = await Step(services, trigger, lambda m, d: Ok(), text="Q").send()
        assert outcome.passover is None
        assert texts(adapter) == ["Q", "Menu closed due to inactivity."]
        assert not services.busy.is_busy(CHANNEL)

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_extend_window(self, adapter, catalog, trigger, say):
        services = MenuServices(
            adapter=adapter,
            config=MenuConfig(collect_timeout_seconds=0.1),
            catalog=catalog,
            default_locale="en-US",
        )

        async def feed():
            for _ in range(4):
                await asyncio.sleep(0.04)
                say("nope")

        feeder = asyncio.create_task(feed())
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcome = await Step(services, trigger, lambda m, d: Retry("again"), text="Q").send()
        await feeder
        assert outcome.passover is None
        assert loop.time() - started < 0.3

    @pytest.mark.asyncio
    async def test_localized_notices(self, services, adapter, trigger, say):
        say("exit")
        step = Step(services, trigger, lambda m, d: Ok(), text="Q", locale="fr-FR")
        await step.send()
        assert "Menu fermé." in texts(adapter)

    @pytest.mark.asyncio
    async def test_locale_falls_back_for_missing_keys(self, services, adapter, trigger, say):
        say("bad")
        say("exit")
        step = Step(services, trigger, lambda m, d: Retry(), text="Q", locale="fr-FR")
        await step.send()
        assert any(t.startswith("That is not a valid choice") for t in texts(adapter))
