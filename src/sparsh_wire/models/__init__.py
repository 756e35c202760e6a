"""Value types exchanged with the client."""

from .event import Event, RawEvent
from .gesture import GestureClassName, GestureDescriptor, GestureID
