"""Swap scanning: past block walks, listeners and the swap output scanner."""

from swapscan.scan.detect_swaps import detect_swaps, watch_swap
from swapscan.scan.models import ClaimEvent, FundingEvent, RefundEvent, SwapType
from swapscan.scan.past_blocks import get_past_blocks
from swapscan.scan.swap_scanner import SwapOutputScanner, swap_scanner

__all__ = [
    "ClaimEvent",
    "FundingEvent",
    "RefundEvent",
    "SwapOutputScanner",
    "SwapType",
    "detect_swaps",
    "get_past_blocks",
    "swap_scanner",
    "watch_swap",
]
