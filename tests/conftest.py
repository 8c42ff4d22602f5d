"""Shared test fixtures for the menu engine."""
import pytest
import pytest_asyncio

from models.schemas import ChatMessage
from channels.chat_adapter import ChatAdapter
from channels.busy import ChannelBusyTracker
from channels.pagination import PageControls
from config.settings import MenuConfig
from i18n.translator import BUNDLED_LOCALES_DIR, load_catalog
from menus.services import MenuServices

CHANNEL = "chan-001"
USER = "user-001"


@pytest.fixture
def catalog() -> dict:
    return load_catalog(BUNDLED_LOCALES_DIR)


@pytest.fixture
def menu_config() -> MenuConfig:
    return MenuConfig(collect_timeout_seconds=1.0, notice_delete_delay_seconds=0.01)


@pytest_asyncio.fixture
async def adapter():
    chat = ChatAdapter()
    yield chat
    await chat.shutdown()


@pytest.fixture
def services(adapter, menu_config, catalog) -> MenuServices:
    return MenuServices(
        adapter=adapter,
        busy=ChannelBusyTracker(),
        page_controls=PageControls(),
        config=menu_config,
        catalog=catalog,
        default_locale="en-US",
    )


@pytest.fixture
def trigger() -> ChatMessage:
    return ChatMessage(channel_id=CHANNEL, author_id=USER, content="!menu")


@pytest.fixture
def say(adapter):
    """Queue a line from the requesting user."""
    def _say(content: str, author_id: str = USER, channel_id: str = CHANNEL) -> ChatMessage:
        return adapter.say(channel_id, author_id, content)
    return _say
