"""Unit tests for version detection and report parsing."""

import pytest

from dbspaces.models.models import DbspaceKind
from dbspaces.reports.parser import (
    ChunkRow,
    MirrorChunkRow,
    parse_chunk_row,
    parse_dbspace_row,
    parse_log_placement,
    parse_reserved_chunks,
    parse_space_summary,
)
from dbspaces.reports.versions import detect_major_version, flag_layout_for
from dbspaces.utils.errors import EngineUnreachable, MalformedReport, UnsupportedVersion

from ..common.test_helpers import (
    V11,
    V12,
    chunk_row,
    dbspace_row,
    log_report,
    mirror_chunk_row,
    reserved_pages_report,
    summary_report,
    version_line,
)


class TestVersions:
    def test_detects_major_version(self):
        assert detect_major_version(version_line("11.70.FC8")) == 11
        assert detect_major_version("\n" + version_line("12.10.FC10") + "\n") == 12

    def test_layouts_differ_in_mirror_column(self):
        assert flag_layout_for(version_line("11.70.FC8")) == V11
        assert flag_layout_for(version_line("12.10.FC10")) == V12

    def test_unknown_version_is_fatal(self):
        with pytest.raises(UnsupportedVersion):
            flag_layout_for(version_line("14.10.FC1"))

    def test_no_version_line_means_engine_down(self):
        with pytest.raises(EngineUnreachable):
            detect_major_version("shared memory not initialized for INFORMIXSERVER 'js_server'\n")


class TestDbspaceRows:
    @pytest.mark.parametrize("layout", [V11, V12])
    def test_flags_read_at_layout_columns(self, layout):
        row = parse_dbspace_row(
            dbspace_row(layout, 3, "data_dbs", first_chunk=6, chunk_count=4,
                        page_size_kb=16, mirrored=True), layout)
        assert row.number == 3
        assert row.name == "data_dbs"
        assert row.first_chunk == 6
        assert row.chunk_count == 4
        assert row.page_size_kb == 16
        assert row.mirrored is True
        assert row.kind == DbspaceKind.REGULAR

    @pytest.mark.parametrize("flag,kind,temp", [
        ("B", DbspaceKind.BLOB, False),
        ("T", DbspaceKind.TEMP, True),
        ("S", DbspaceKind.SMART_BLOB, False),
        ("U", DbspaceKind.SMART_BLOB, True),
        ("A", DbspaceKind.REGULAR, False),
    ])
    def test_kind_flags(self, flag, kind, temp):
        row = parse_dbspace_row(dbspace_row(V12, 2, "x", 2, kind_flag=flag), V12)
        assert row.kind == kind
        assert row.temp is temp

    def test_wrong_layout_misses_mirror_flag(self):
        line = dbspace_row(V12, 3, "data_dbs", 6, mirrored=True)
        assert parse_dbspace_row(line, V11).mirrored is False


class TestChunkRows:
    def test_primary_row_strips_free_marker(self):
        row = parse_chunk_row(chunk_row(6, 3, 12500, 400, "/ifmxdev/js_server.data_dbs.P.001",
                                        free_marker="~"))
        assert row == ChunkRow(row.address, 6, 3, 0, 12500, 400, "/ifmxdev/js_server.data_dbs.P.001")

    def test_mirror_row(self):
        row = parse_chunk_row(mirror_chunk_row(6, 3, 12500, "/ifmxdev/js_server.data_dbs.m.001", offset=8))
        assert isinstance(row, MirrorChunkRow)
        assert row.offset == 8
        assert row.path == "/ifmxdev/js_server.data_dbs.m.001"

    def test_unknown_role_is_malformed(self):
        line = chunk_row(6, 3, 100, 10, "/x").replace("PO-B--", "XO-B--")
        with pytest.raises(MalformedReport):
            parse_chunk_row(line)


class TestSpaceSummary:
    def _report(self, expanded="always"):
        return summary_report(
            [dbspace_row(V12, 1, "rootdbs", 1),
             dbspace_row(V12, 3, "data_dbs", 6, chunk_count=2, mirrored=True)],
            [chunk_row(1, 1, 250000, 1000, "/ifmxdev/js_server.rootdbs.P.001"),
             chunk_row(6, 3, 12500, 400, "/ifmxdev/js_server.data_dbs.P.001"),
             mirror_chunk_row(6, 3, 12500, "/ifmxdev/js_server.data_dbs.m.001"),
             chunk_row(11, 3, 3125, 3000, "/ifmxdev/js_server.data_dbs.P.002")],
            expanded=expanded)

    def test_sections_are_split(self):
        summary = parse_space_summary(self._report(), V12)
        assert [d.name for d in summary.dbspaces] == ["rootdbs", "data_dbs"]
        assert [c.number for c in summary.chunks] == [1, 6, 11]
        assert [m.number for m in summary.mirrors] == [6]
        assert summary.large_chunks_enabled is True

    def test_large_chunks_disabled(self):
        assert parse_space_summary(self._report("disabled"), V12).large_chunks_enabled is False

    def test_missing_expanded_line_means_disabled(self):
        assert parse_space_summary(self._report(None), V12).large_chunks_enabled is False

    def test_no_rows_means_engine_down(self):
        with pytest.raises(EngineUnreachable):
            parse_space_summary(version_line() + "\n", V12)


class TestLogPlacement:
    def test_physical_and_logical_logs(self):
        placements = parse_log_placement(log_report("2:53", ("3:53", "4:53")))
        assert [(p.log_type, p.chunk_number) for p in placements] == [
            ("physical", 2), ("logical", 3), ("logical", 4)]


class TestReservedChunks:
    def test_chain_records(self):
        records = parse_reserved_chunks(reserved_pages_report(
            [(1, None), (6, 11), (11, 12), (12, 13), (13, None)]))
        assert {r.chunk_number: r.next_chunk for r in records} == {
            1: None, 6: 11, 11: 12, 12: 13, 13: None}

    def test_mirror_section_is_ignored(self):
        records = parse_reserved_chunks(reserved_pages_report([(1, None)]))
        assert [(r.chunk_number, r.next_chunk) for r in records] == [(1, None)]

    def test_no_records_means_engine_down(self):
        with pytest.raises(EngineUnreachable):
            parse_reserved_chunks("oncheck: cannot attach to shared memory\n")
