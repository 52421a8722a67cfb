"""
Chunk order resolution.

Chunk numbers are reused after drops, so the only reliable record of the
order chunks were added to a dbspace is the next-chunk chain stored in
the reserved pages. Each dbspace's chain is walked from its first chunk;
a broken chain only affects the dbspace it belongs to.
"""

import logging
from typing import Dict, Iterable, Optional

from ..models.models import Inventory
from ..reports.parser import ReservedChunkRecord
from ..utils.errors import ChunkOrderError

logger = logging.getLogger(__name__)


def _walk_chain(inventory: Inventory, dbspace_number: int,
                successors: Dict[int, Optional[int]]) -> Dict[int, int]:
    dbspace = inventory.dbspaces[dbspace_number]
    orders: Dict[int, int] = {}
    current: Optional[int] = dbspace.first_chunk_ref

    while current is not None:
        if current in orders:
            raise ChunkOrderError(dbspace_number, f"chunk chain loops back to chunk {current}")
        if current not in successors:
            raise ChunkOrderError(dbspace_number, f"chunk chain references unknown chunk {current}")
        chunk = inventory.chunks.get(current)
        if chunk is None or chunk.dbspace_number != dbspace_number:
            raise ChunkOrderError(dbspace_number,
                                  f"chunk chain passes through chunk {current} of another dbspace")
        orders[current] = len(orders) + 1
        current = successors[current]

    missing = [c.number for c in inventory.chunks.values()
               if c.dbspace_number == dbspace_number and c.number not in orders]
    if missing:
        raise ChunkOrderError(dbspace_number, f"chunks {missing} are not on the chunk chain")
    return orders


def resolve_chunk_order(inventory: Inventory, records: Iterable[ReservedChunkRecord]) -> Inventory:
    """Set next_chunk_ref and order_in_dbspace on every chunk.

    Dbspaces whose chain is dangling or cyclic keep unresolved orders and
    get an entry in ``inventory.order_errors``.
    """
    successors: Dict[int, Optional[int]] = {}
    for record in records:
        successors[record.chunk_number] = record.next_chunk

    for number, chunk in inventory.chunks.items():
        chunk.next_chunk_ref = successors.get(number)
        chunk.order_in_dbspace = None

    for dbspace_number in sorted(inventory.dbspaces):
        try:
            orders = _walk_chain(inventory, dbspace_number, successors)
        except ChunkOrderError as e:
            logger.warning(e.message)
            inventory.order_errors[dbspace_number] = e.message
            continue
        for chunk_number, order in orders.items():
            inventory.chunks[chunk_number].order_in_dbspace = order

    return inventory
