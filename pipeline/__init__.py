"""Subscriber pipeline module.

This module provides the message-processing pipeline of the subscriber:
- CancelToken: Cancel-once signal shared by the workers
- Channel: Bounded FIFO between stages
- IngressHandler: Adapter from client callbacks to the input channel
- Processor: Worker printing and forwarding messages
- PipelineState: Subscriber lifecycle states
- PipelineStateMachine: State transition management
- Subscriber: Supervisor wiring it all together
"""

from .cancel import CancelToken
from .channel import Cancelled, Channel, ChannelClosed
from .ingress import IngressHandler
from .processor import Processor, format_message
from .state import PipelineState, PipelineStateMachine
from .subscriber import Subscriber

__all__ = [
    # Cancellation and channels
    "CancelToken",
    "Cancelled",
    "Channel",
    "ChannelClosed",
    # Stages
    "IngressHandler",
    "Processor",
    "format_message",
    # State management
    "PipelineState",
    "PipelineStateMachine",
    # Supervisor
    "Subscriber",
]
