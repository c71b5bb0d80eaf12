from pydantic import BaseModel, ConfigDict, StrictStr
from typing import Literal, Optional

JOIN = "join"
JOINED = "joined"
READY = "ready"
LEAVE = "leave"
OFFER = "offer"
ANSWER = "answer"
CANDIDATE = "candidate"

# Handshake types relayed to the other peer without inspection
FORWARDED_TYPES = frozenset({OFFER, ANSWER, CANDIDATE})


class InboundMessage(BaseModel):
    """Envelope every client frame must satisfy.

    Only `type` and `room` are read by the broker; anything else (sdp,
    candidate, ...) is kept as-is and never interpreted.
    """
    model_config = ConfigDict(extra="allow")

    type: StrictStr
    room: Optional[StrictStr] = None


class BrokerMessage(BaseModel):
    """Notification produced by the broker itself."""
    type: Literal[JOINED, READY, LEAVE]


def joined_message() -> dict:
    return BrokerMessage(type=JOINED).model_dump()


def ready_message() -> dict:
    return BrokerMessage(type=READY).model_dump()


def leave_message() -> dict:
    return BrokerMessage(type=LEAVE).model_dump()
