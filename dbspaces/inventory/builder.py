"""Inventory model builder: dbspace and chunk rows into an Inventory."""

import logging

from ..config.dbspace_defaults import DbspaceDefaults
from ..models.models import Chunk, DBspace, DbspaceKind, Inventory, percent_full
from ..reports.parser import SpaceSummary
from ..utils.errors import MalformedReport

logger = logging.getLogger(__name__)


def build_inventory(summary: SpaceSummary, defaults: DbspaceDefaults) -> Inventory:
    """Combine parsed summary rows into an Inventory.

    Each chunk takes its dbspace's name, page size and kind. Blob chunk
    sizes are reported in data pages while their free counts are in blob
    pages, so sizes are rescaled into blob pages before totals are summed.
    Percentages are computed only after every chunk has been accumulated.

    Raises:
        MalformedReport: a chunk references a dbspace number not in the report
    """
    inventory = Inventory(large_chunks_enabled=summary.large_chunks_enabled)

    for row in summary.dbspaces:
        inventory.dbspaces[row.number] = DBspace(
            number=row.number,
            name=row.name,
            first_chunk_ref=row.first_chunk,
            chunk_count=row.chunk_count,
            page_size_kb=row.page_size_kb,
            kind=row.kind,
            mirrored=row.mirrored,
            temp=row.temp,
            address=row.address,
        )

    for row in summary.chunks:
        dbspace = inventory.dbspaces.get(row.dbspace_number)
        if dbspace is None:
            raise MalformedReport(
                f"Chunk {row.number} references unknown dbspace {row.dbspace_number}")

        size = row.size
        if dbspace.kind == DbspaceKind.BLOB and dbspace.page_size_kb:
            size = defaults.data_page_size * row.size / dbspace.page_size_kb

        inventory.chunks[row.number] = Chunk(
            number=row.number,
            dbspace_number=row.dbspace_number,
            offset_pages=row.offset,
            size_pages=size,
            free_pages=row.free,
            symlink_path=row.path,
            address=row.address,
            dbspace_name=dbspace.name,
            page_size_kb=dbspace.page_size_kb,
            kind=dbspace.kind,
            is_first_in_dbspace=(row.number == dbspace.first_chunk_ref),
        )
        dbspace.total_pages += size
        dbspace.free_pages += row.free

    for mirror in summary.mirrors:
        chunk = inventory.chunks.get(mirror.number)
        if chunk is None:
            logger.warning(f"Mirror row for chunk {mirror.number} has no primary chunk; ignored")
            continue
        chunk.mirror_offset_pages = mirror.offset
        chunk.mirror_symlink_path = mirror.path

    for dbspace in inventory.dbspaces.values():
        dbspace.pct_full = percent_full(dbspace.total_pages, dbspace.free_pages)

    logger.debug(f"Built inventory of {len(inventory.dbspaces)} dbspaces "
                 f"and {len(inventory.chunks)} chunks")
    return inventory
