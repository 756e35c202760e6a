"""Protocol layer: message framing, payload builders, and reply decoding."""

from .framing import Frame, build_frame, parse_frame, split_frames
from .commands import MessageType, ERROR_GROUP_ID
from .parser import decode_gesture_list, read_gesture_list
from .framer import MessageFramer
