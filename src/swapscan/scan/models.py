"""Swap notifications emitted by the swap output scanner."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Union


class SwapType(str, Enum):
    """On-chain step of a swap."""

    CLAIM = "claim"
    FUNDING = "funding"
    REFUND = "refund"


@dataclass
class ClaimEvent:
    """A transaction spent a swap output with the payment preimage."""

    id: str
    network: str
    outpoint: str
    preimage: str
    script: str
    type: str = field(default=SwapType.CLAIM.value, init=False)


@dataclass
class FundingEvent:
    """A transaction paid into a swap output script."""

    id: str
    network: str
    index: int
    invoice: str
    output: str
    script: str
    tokens: int
    vout: int
    type: str = field(default=SwapType.FUNDING.value, init=False)


@dataclass
class RefundEvent:
    """A transaction spent a swap output through the timeout path."""

    id: str
    network: str
    outpoint: str
    script: str
    type: str = field(default=SwapType.REFUND.value, init=False)


SwapEvent = Union[ClaimEvent, FundingEvent, RefundEvent]


def event_to_dict(event: SwapEvent) -> dict:
    """Plain dict form of a notification."""
    return asdict(event)
