"""
Stack Games Wire Format.

JSON models, conversion to and from engine values, and save files.
"""

from src.wire.models import WireGameState, WireHistory, WireMeta, WireSnapshot
from src.wire.save_file import LoadedGame, dumps_save, load_save, loads_save
from src.wire.serializer import (
    deserialize_history,
    deserialize_snapshot,
    deserialize_state,
    serialize_history,
    serialize_snapshot,
    serialize_state,
    to_json_dict,
)

__all__ = [
    # Models
    "WireGameState",
    "WireHistory",
    "WireMeta",
    "WireSnapshot",
    # Conversion
    "deserialize_history",
    "deserialize_snapshot",
    "deserialize_state",
    "serialize_history",
    "serialize_snapshot",
    "serialize_state",
    "to_json_dict",
    # Save files
    "LoadedGame",
    "dumps_save",
    "load_save",
    "loads_save",
]
