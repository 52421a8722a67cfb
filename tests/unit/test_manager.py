"""Unit tests for the report source, manager, filesystem usage and command line."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest

from dbspaces import cli
from dbspaces.inventory.fs_info import filesystem_usage
from dbspaces.manager import DbspaceManager
from dbspaces.reports.source import ReportSource
from dbspaces.utils.errors import EngineUnreachable

from ..common.test_helpers import (
    V12,
    chunk_row,
    dbspace_row,
    log_report,
    reserved_pages_report,
    summary_report,
    version_line,
)


def fake_reports(layout, summary=None):
    """Report runner for a server with rootdbs, llog_dbs and a three-chunk data_dbs."""
    root = layout.make_chunk("rootdbs", 1, 1)[0]
    llog = layout.make_chunk("llog_dbs", 1, 2)[0]
    data = [layout.make_chunk("data_dbs", i, seq)[0] for i, seq in ((1, 6), (2, 12), (3, 11))]
    reports = {
        ("onstat", "-"): version_line("12.10.FC10"),
        ("onstat", "-d"): summary or summary_report(
            [dbspace_row(V12, 1, "rootdbs", 1),
             dbspace_row(V12, 2, "llog_dbs", 2),
             dbspace_row(V12, 3, "data_dbs", 6, chunk_count=3, page_size_kb=16)],
            [chunk_row(1, 1, 250000, 1000, root),
             chunk_row(2, 2, 250100, 100, llog),
             chunk_row(6, 3, 1000, 100, data[0]),
             chunk_row(11, 3, 1000, 500, data[2]),
             chunk_row(12, 3, 1000, 1000, data[1])]),
        ("onstat", "-l"): log_report("1:53", ("2:53", "2:5053")),
        ("oncheck", "-pr"): reserved_pages_report(
            [(1, None), (2, None), (6, 12), (12, 11), (11, None)]),
    }
    calls = []

    def runner(argv):
        calls.append(tuple(argv))
        return reports.get(tuple(argv), "")

    runner.calls = calls
    return runner


@pytest.fixture
def manager(layout):
    source = ReportSource(runner=fake_reports(layout), privileged=False)
    return DbspaceManager(source=source, defaults=layout.defaults, server="js_server_shm")


class TestReportSource:
    def test_privileged_falls_back_to_standard_summary(self, layout):
        runner = fake_reports(layout)
        summary = ReportSource(runner=runner, privileged=True).space_summary()
        assert ("onstat", "-d", "update") in runner.calls
        assert ("onstat", "-d") in runner.calls
        assert len(summary.dbspaces) == 3

    def test_layout_detected_once(self, layout):
        runner = fake_reports(layout)
        source = ReportSource(runner=runner, privileged=False)
        source.space_summary()
        source.space_summary()
        assert runner.calls.count(("onstat", "-")) == 1

    def test_engine_down(self):
        with pytest.raises(EngineUnreachable):
            ReportSource(runner=lambda argv: "", privileged=False).space_summary()


class TestManager:
    def test_refresh_builds_ordered_expanded_inventory(self, manager, layout):
        inventory = manager.inventory
        assert manager.server == "js_server"
        assert [c.number for c in inventory.chunks_of(3)] == [6, 12, 11]
        assert inventory.chunk_at(3, 2).raw_file_path == layout.raw_file(12)

    def test_log_dbspaces(self, manager):
        assert manager.log_dbspaces() == ["llog_dbs"]

    def test_space_records(self, manager):
        records = manager.space_records(["data_dbs"], chunks=True, logs=True)
        assert [d["name"] for d in records["dbspaces"]] == ["data_dbs"]
        assert [c["order"] for c in records["chunks"]] == [1, 2, 3]
        assert records["log_dbspaces"] == ["llog_dbs"]
        assert records["totals"]["chunk_count"] == 5

    def test_drop_chunk_uses_creation_order(self, manager, layout):
        with patch("dbspaces.lifecycle.executor.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0)
            result = manager.drop_chunk("data_dbs", 2)
        assert result.succeeded
        assert os.path.exists(layout.raw_file(12) + ".NEE-js_server.data_dbs.P.002")

    def test_rebuild_script(self, manager):
        lines = manager.rebuild_script()
        assert lines[0].startswith("#-onspaces -c -d rootdbs")
        assert [line.split()[1] for line in lines[3:]] == ["-a", "-a"]


class TestFilesystemUsage:
    def test_groups_raw_files_by_mount(self, manager, layout):
        data_dbs = manager.inventory.find_dbspace("data_dbs")
        entries = filesystem_usage(manager.inventory, data_dbs)
        assert len(entries) == 1
        assert sorted(entries[0]["raw_files"]) == sorted(
            [layout.raw_file(6), layout.raw_file(11), layout.raw_file(12)])
        assert entries[0]["total_kb"] > 0

    def test_unreadable_filesystem_reported(self, manager):
        data_dbs = manager.inventory.find_dbspace("data_dbs")
        with patch("dbspaces.inventory.fs_info.psutil.disk_usage", side_effect=OSError("gone")):
            entries = filesystem_usage(manager.inventory, data_dbs)
        assert all(entry["error"] == "gone" for entry in entries)


class TestCli:
    @pytest.fixture(autouse=True)
    def use_manager(self, manager):
        with patch("dbspaces.cli.DbspaceManager", return_value=manager):
            yield

    def test_spaces_prints_json(self, capsys):
        assert cli.main(["spaces", "--chunks", "data_dbs"]) == 0
        records = json.loads(capsys.readouterr().out)
        assert len(records["chunks"]) == 3

    def test_unknown_dbspace_exit_status(self):
        assert cli.main(["spaces", "nope_dbs"]) == 1

    def test_first_chunk_drop_refused(self):
        assert cli.main(["drop-chunk", "-d", "data_dbs", "-n", "1"]) == 1

    def test_dry_run_creates_nothing(self, capsys, layout):
        assert cli.main(["new-dbspace", "-d", "new_dbs", "-s", "100", "-X"]) == 0
        out = capsys.readouterr().out
        assert "onspaces -c -d new_dbs -k 2" in out
        assert "(dry run)" in out
        assert not os.path.lexists(layout.symlink("new_dbs", 1))

    def test_dup_spaces(self, capsys):
        assert cli.main(["dup-spaces"]) == 0
        assert capsys.readouterr().out.startswith("#-onspaces")

    def test_no_command(self):
        assert cli.main([]) == 1
