"""
Parsers for the engine's textual diagnostic reports.

Three report families are understood:

- the space/chunk summary (``onstat -d``), with a Dbspaces section, a
  Chunks section and a trailing "Expanded chunk capacity" line;
- the log placement report (``onstat -l``), locating the physical log and
  each logical log by ``chunk:offset``;
- the chunk reserved-page report (``oncheck -pr``), whose chunk section
  states each chunk's successor within its dbspace.

Data rows of the tabular reports start with a lowercase hexadecimal
address; everything else is header, footer or commentary.
"""

import logging
import re
from typing import List, NamedTuple, Optional

from ..models.models import DbspaceKind
from ..utils.errors import EngineUnreachable, MalformedReport
from .versions import FlagLayout

logger = logging.getLogger(__name__)

HEX_ROW_PATTERN = re.compile(r'^[0-9a-f]+\s+')
DECIMAL_PATTERN = re.compile(r'^\d+$')
CHUNK_OFFSET_PATTERN = re.compile(r'^(\d+):(\d+)$')

KIND_FLAGS = {
    'B': DbspaceKind.BLOB,
    'T': DbspaceKind.TEMP,
    'S': DbspaceKind.SMART_BLOB,
    'U': DbspaceKind.SMART_BLOB,
}
TEMP_FLAGS = ('T', 'U')


class DbspaceRow(NamedTuple):
    address: str
    number: int
    first_chunk: int
    chunk_count: int
    page_size_kb: int
    kind: DbspaceKind
    mirrored: bool
    name: str
    temp: bool = False


class ChunkRow(NamedTuple):
    address: str
    number: int
    dbspace_number: int
    offset: int
    size: int
    free: int
    path: str


class MirrorChunkRow(NamedTuple):
    address: str
    number: int
    offset: int
    path: str


class SpaceSummary(NamedTuple):
    dbspaces: List[DbspaceRow]
    chunks: List[ChunkRow]
    mirrors: List[MirrorChunkRow]
    large_chunks_enabled: bool


class LogPlacement(NamedTuple):
    log_type: str  # "physical" or "logical"
    chunk_number: int
    offset: int


class ReservedChunkRecord(NamedTuple):
    chunk_number: int
    next_chunk: Optional[int]


def _is_data_row(tokens: List[str], line: str) -> bool:
    return (HEX_ROW_PATTERN.match(line) is not None
            and len(tokens) > 1
            and DECIMAL_PATTERN.match(tokens[1]) is not None)


def _flag_at(line: str, pos: int) -> str:
    return line[pos] if len(line) > pos else ' '


def _to_int(token: str, what: str, line: str) -> int:
    try:
        return int(token.lstrip('~'))
    except ValueError:
        raise MalformedReport(f"Bad {what} '{token}' in report line: {line.strip()}")


def parse_dbspace_row(line: str, layout: FlagLayout) -> DbspaceRow:
    """Parse one row of the Dbspaces section."""
    tokens = line.split()
    if len(tokens) < 7:
        raise MalformedReport(f"Short dbspace row: {line.strip()}")

    kind_flag = _flag_at(line, layout.kind_flag_pos)
    mirror_flag = _flag_at(line, layout.mirror_flag_pos)
    if mirror_flag not in ('M', 'N'):
        logger.warning(f"Unexpected mirror flag '{mirror_flag}' at column "
                       f"{layout.mirror_flag_pos} of dbspace row {tokens[1]}")

    return DbspaceRow(
        address=tokens[0],
        number=int(tokens[1]),
        first_chunk=_to_int(tokens[3], "first chunk", line),
        chunk_count=_to_int(tokens[4], "chunk count", line),
        page_size_kb=_to_int(tokens[5], "page size", line) // 1024,
        kind=KIND_FLAGS.get(kind_flag, DbspaceKind.REGULAR),
        mirrored=(mirror_flag == 'M'),
        name=tokens[-1],
        temp=kind_flag in TEMP_FLAGS,
    )


def parse_chunk_row(line: str):
    """Parse one row of the Chunks section into a primary or mirror row."""
    tokens = line.split()
    if len(tokens) < 4:
        raise MalformedReport(f"Short chunk row: {line.strip()}")

    role = tokens[-2][:1]
    number = int(tokens[1])
    if role == 'P':
        if len(tokens) < 8:
            raise MalformedReport(f"Short primary chunk row: {line.strip()}")
        return ChunkRow(
            address=tokens[0],
            number=number,
            dbspace_number=_to_int(tokens[2], "dbspace number", line),
            offset=_to_int(tokens[3], "offset", line),
            size=_to_int(tokens[4], "size", line),
            free=_to_int(tokens[5], "free count", line),
            path=tokens[-1],
        )
    if role == 'M':
        return MirrorChunkRow(
            address=tokens[0],
            number=number,
            offset=_to_int(tokens[3], "offset", line),
            path=tokens[-1],
        )
    raise MalformedReport(f"Chunk {number} is neither primary nor mirror: {line.strip()}")


def parse_space_summary(text: str, layout: FlagLayout) -> SpaceSummary:
    """Parse the space/chunk summary report.

    Raises:
        EngineUnreachable: no dbspace rows were found at all
        MalformedReport: a data row does not fit the expected layout
    """
    dbspaces: List[DbspaceRow] = []
    chunks: List[ChunkRow] = []
    mirrors: List[MirrorChunkRow] = []
    section = None
    large_chunks_enabled = False

    for line in text.splitlines():
        if line.startswith('Expanded'):
            # Final line: "Expanded chunk capacity mode: always|disabled"
            large_chunks_enabled = 'disabled' not in line
            break
        if line.startswith('Dbspaces'):
            section = 'dbspaces'
            continue
        if line.startswith('Chunks'):
            section = 'chunks'
            continue
        if section is None:
            continue

        tokens = line.split()
        if not _is_data_row(tokens, line):
            continue

        if section == 'dbspaces':
            dbspaces.append(parse_dbspace_row(line, layout))
        else:
            row = parse_chunk_row(line)
            if isinstance(row, ChunkRow):
                chunks.append(row)
            else:
                mirrors.append(row)

    if not dbspaces:
        raise EngineUnreachable("No dbspace rows found in space summary report")

    logger.debug(f"Parsed {len(dbspaces)} dbspaces, {len(chunks)} chunks, "
                 f"{len(mirrors)} mirror chunks")
    return SpaceSummary(dbspaces, chunks, mirrors, large_chunks_enabled)


def parse_log_placement(text: str) -> List[LogPlacement]:
    """Parse the log report into the chunk locations of every log."""
    placements: List[LogPlacement] = []
    section = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        if section is None:
            if line.startswith('phybegin'):
                section = 'physical'
            elif line.startswith('address'):
                section = 'logical'
            continue

        if section == 'physical':
            # The line right after the phybegin heading holds chunk:offset
            match = CHUNK_OFFSET_PATTERN.match(line.split()[0])
            if match:
                placements.append(LogPlacement('physical', int(match.group(1)),
                                               int(match.group(2))))
            section = None
            continue

        if not HEX_ROW_PATTERN.match(line):
            continue
        tokens = line.split()
        if len(tokens) != 8:
            continue
        match = CHUNK_OFFSET_PATTERN.match(tokens[4])
        if match:
            placements.append(LogPlacement('logical', int(match.group(1)),
                                           int(match.group(2))))

    if not placements:
        raise EngineUnreachable("No log locations found in log report")
    return placements


def parse_reserved_chunks(text: str) -> List[ReservedChunkRecord]:
    """Parse the chunk section of the reserved-page report.

    Each chunk record names its number and, optionally, the next chunk
    in its dbspace. A record with no "Next chunk" line is the last in
    its chain.
    """
    records: List[ReservedChunkRecord] = []
    lines = iter(text.splitlines())
    in_chunk_section = False
    current: Optional[int] = None
    next_chunk: Optional[int] = None

    def flush():
        if current is not None:
            records.append(ReservedChunkRecord(current, next_chunk))

    for raw in lines:
        line = raw.rstrip()
        if not line:
            continue
        if 'Validating PAGE_1PCHUNK' in line:
            in_chunk_section = True
            next(lines, None)  # "Using primary chunk page ..." line
            continue
        if not in_chunk_section:
            continue
        if 'Validating' in line:
            break

        tokens = line.split()
        if 'Chunk number' in line:
            flush()
            current = _to_int(tokens[-1], "chunk number", line)
            next_chunk = None
        elif 'Next chunk in DBspace' in line and current is not None:
            successor = _to_int(tokens[-1], "next chunk", line)
            next_chunk = successor if successor > 0 else None

    flush()
    if not records:
        raise EngineUnreachable("No chunk records found in reserved-page report")
    return records
