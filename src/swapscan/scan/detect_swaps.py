"""Swap detection for a single transaction.

Swaps are registered with watch_swap, which stores the swap under both its
output script (to recognize funding) and its redeem script (to recognize
spends). detect_swaps then classifies a transaction against those entries:

- an output paying a watched output script is a funding
- an input whose witness ends with a watched redeem script is a claim when
  the witness carries the payment preimage, and a refund otherwise
"""

import hashlib
import logging
from typing import Any, Optional

from swapscan.cache.factory import get_json_from_cache, set_json_in_cache
from swapscan.chain.factory import get_transaction
from swapscan.config import get_settings
from swapscan.errors import ScanError
from swapscan.scan.models import SwapType

logger = logging.getLogger(__name__)

SWAP_OUTPUT_CACHE_TYPE = "swap_output"
SWAP_SCRIPT_CACHE_TYPE = "swap_script"
PREIMAGE_HEX_LENGTH = 64


def _swap_key(network: str, script: str) -> str:
    return f"{network}:{script.lower()}"


async def watch_swap(
    cache: str,
    network: str,
    script: str,
    output: str,
    index: int,
    invoice: str,
    payment_hash: Optional[str] = None,
    ms: Optional[int] = None,
) -> None:
    """Register a swap so its transactions are detected.

    Args:
        cache: Cache selector
        network: Network name
        script: Redeem script hex
        output: Output script hex the swap is funded to
        index: HD seed key index of the claim key
        invoice: BOLT 11 invoice the swap pays
        payment_hash: Hex hash the claim preimage must match
        ms: Registration lifetime, defaults to settings.swap_watch_ttl_ms
    """
    if not cache:
        raise ScanError(400, "ExpectedCacheForSwapWatch")

    if not network:
        raise ScanError(400, "ExpectedNetworkName")

    if not script or not output:
        raise ScanError(400, "ExpectedSwapScripts")

    swap = {
        "index": index,
        "invoice": invoice,
        "output": output.lower(),
        "payment_hash": payment_hash.lower() if payment_hash else None,
        "script": script.lower(),
    }
    ttl = ms if ms is not None else get_settings().swap_watch_ttl_ms

    await set_json_in_cache(cache, SWAP_OUTPUT_CACHE_TYPE, _swap_key(network, output), swap, ttl)
    await set_json_in_cache(cache, SWAP_SCRIPT_CACHE_TYPE, _swap_key(network, script), swap, ttl)

    logger.info(f"Watching {network} swap output {output}")


def _is_preimage(candidate: str, payment_hash: Optional[str]) -> bool:
    """Check whether a witness element is the swap's payment preimage."""
    if len(candidate) != PREIMAGE_HEX_LENGTH:
        return False

    try:
        preimage = bytes.fromhex(candidate)
    except ValueError:
        return False

    if not payment_hash:
        return True

    return hashlib.sha256(preimage).hexdigest() == payment_hash


async def _funding_records(cache: str, network: str, tx: dict[str, Any]) -> list[dict]:
    records = []

    for vout, output in enumerate(tx.get("vout") or []):
        output_script = (output.get("scriptpubkey") or "").lower()
        if not output_script:
            continue

        swap = await get_json_from_cache(
            cache, SWAP_OUTPUT_CACHE_TYPE, _swap_key(network, output_script)
        )
        if not swap:
            continue

        records.append({
            "type": SwapType.FUNDING.value,
            "index": swap["index"],
            "invoice": swap["invoice"],
            "output": output_script,
            "script": swap["script"],
            "tokens": output.get("value", 0),
            "vout": vout,
        })

    return records


async def _spend_records(cache: str, network: str, tx: dict[str, Any]) -> list[dict]:
    records = []

    for spend in tx.get("vin") or []:
        witness = spend.get("witness") or []
        if len(witness) < 2 or spend.get("is_coinbase"):
            continue

        script = witness[-1].lower()
        swap = await get_json_from_cache(cache, SWAP_SCRIPT_CACHE_TYPE, _swap_key(network, script))
        if not swap:
            continue

        outpoint = f"{spend.get('txid')}:{spend.get('vout')}"
        candidate = witness[-2].lower()

        if _is_preimage(candidate, swap.get("payment_hash")):
            records.append({
                "type": SwapType.CLAIM.value,
                "outpoint": outpoint,
                "preimage": candidate,
                "script": script,
            })
        else:
            records.append({
                "type": SwapType.REFUND.value,
                "outpoint": outpoint,
                "script": script,
            })

    return records


async def detect_swaps(cache: str, id: str, network: str) -> list[dict]:
    """Detect swap steps in a transaction.

    Args:
        cache: Cache selector holding watched swaps
        id: Transaction id
        network: Network name

    Returns:
        Swap records, each with a "type" tag (claim, funding, refund) and
        the fields of that type
    """
    if not cache:
        raise ScanError(400, "ExpectedCacheForSwapDetection")

    if not id:
        raise ScanError(400, "ExpectedTransactionId")

    if not network:
        raise ScanError(400, "ExpectedNetworkName")

    tx = await get_transaction(network, id)

    records = await _spend_records(cache, network, tx)
    records.extend(await _funding_records(cache, network, tx))

    if records:
        logger.debug(f"Transaction {id} carries {len(records)} swap records")

    return records
