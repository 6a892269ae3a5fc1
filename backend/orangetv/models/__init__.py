# backend/orangetv/models/__init__.py
from .account import Account
from .admin_config import AdminConfigRow
from .conversation import Conversation
from .device_binding import DeviceBinding
from .friend import FriendEdge
from .friend_request import FriendRequest
from .media import Favorite, PlayRecord, SearchHistory, SkipConfig
from .message import Message

__all__ = [
    "Account",
    "AdminConfigRow",
    "Conversation",
    "DeviceBinding",
    "Favorite",
    "FriendEdge",
    "FriendRequest",
    "Message",
    "PlayRecord",
    "SearchHistory",
    "SkipConfig",
]
