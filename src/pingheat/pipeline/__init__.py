from __future__ import annotations

from pingheat.pipeline.channel import Channel, ChannelClosed
from pingheat.pipeline.command import build_command
from pingheat.pipeline.distributor import Distributor, StatsSink
from pingheat.pipeline.runner import PingRunner

__all__ = [
    "Channel",
    "ChannelClosed",
    "Distributor",
    "PingRunner",
    "StatsSink",
    "build_command",
]
