"""Channel adapters and the per-channel services menus depend on."""
from channels.base import (
    ChannelAdapter,
    ChannelError,
    ChannelMetrics,
    MissingPermissionError,
    UnknownMessageError,
    EmptyMessageError,
    is_missing_permission,
)
from channels.chat_adapter import ChatAdapter
from channels.busy import ChannelBusyTracker
from channels.pagination import PageControls

__all__ = [
    "ChannelAdapter", "ChannelError", "ChannelMetrics",
    "MissingPermissionError", "UnknownMessageError", "EmptyMessageError",
    "is_missing_permission",
    "ChatAdapter", "ChannelBusyTracker", "PageControls",
]
