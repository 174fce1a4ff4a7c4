"""
Shared State Sync Package

Channels that exchange guess histories and round markers between the two
participants of a room.
"""

from .base import SharedStateChannel, empty_room_document
from .memory import InMemoryRoomStore, InMemoryChannel
from .mongo import MongoRoomChannel

__all__ = [
    'SharedStateChannel', 'empty_room_document',
    'InMemoryRoomStore', 'InMemoryChannel', 'MongoRoomChannel'
]
