"""Unit tests for chunk path naming and validation."""

import os

import pytest

from dbspaces.models.models import ChunkRole
from dbspaces.storage.naming import (
    base_server_name,
    generate_chunk_paths,
    is_scanned_top,
    mirror_symlink_for,
    next_raw_sequence,
    next_symlink_index,
    raw_file_sequence,
    retired_name,
    round_down_size,
    round_up_size,
    symlink_name,
)
from dbspaces.storage.validator import (
    raw_file_problems,
    symlink_problems,
    validate_chunk_directory,
    validate_raw_file,
    validate_symlink,
)
from dbspaces.utils.errors import InvalidName, NotFound, PermissionDenied


class TestRounding:
    def test_round_down(self):
        assert round_down_size(16, 100) == 96
        assert round_down_size(2, 2097150) == 2097150

    def test_round_up(self):
        assert round_up_size(16, 100) == 112
        assert round_up_size(4, 100) == 100


class TestNames:
    def test_symlink_name(self):
        assert symlink_name("js_server", "data_dbs", ChunkRole.PRIMARY, 3) == "js_server.data_dbs.P.003"
        assert symlink_name("js_server", "data_dbs", ChunkRole.MIRROR, 12, 4) == "js_server.data_dbs.m.0012"

    def test_shm_suffix_stripped(self):
        assert base_server_name("js_server_shm") == "js_server"
        assert base_server_name("js_server") == "js_server"

    def test_retired_name(self):
        assert retired_name("/ifmxdevp/file.00012", "/ifmxdev/js_server.data_dbs.P.003") == \
            "/ifmxdevp/file.00012.NEE-js_server.data_dbs.P.003"

    def test_mirror_symlink(self):
        assert mirror_symlink_for("/ifmxdev/js_server.data_dbs.P.003") == \
            "/ifmxdev/js_server.data_dbs.m.003"

    def test_sequence_from_active_and_retired_names(self):
        assert raw_file_sequence("file.00012") == 12
        assert raw_file_sequence("file.00012.NEE-js_server.data_dbs.P.003") == 12
        assert raw_file_sequence("file.00012.bak") is None


class TestSequences:
    def test_first_sequence_is_one(self, layout):
        assert next_raw_sequence(layout.defaults) == 1

    def test_retired_files_count_toward_high_water_mark(self, layout):
        layout.make_raw_file(3)
        layout.make_raw_file(4, mirror=True)
        retired = layout.make_raw_file(9)
        os.rename(retired, retired_name(retired, layout.symlink("data_dbs", 2)))
        assert next_raw_sequence(layout.defaults) == 10

    def test_sibling_top_directories_are_scanned(self, layout):
        sibling = layout.root / "ifmxdevp2" / "files"
        sibling.mkdir(parents=True)
        (sibling / "file.00040").write_bytes(b"")
        assert next_raw_sequence(layout.defaults) == 41

    def test_scanned_top_directories(self, layout):
        root = layout.root
        assert is_scanned_top(layout.defaults, str(root / "ifmxdevp"))
        assert is_scanned_top(layout.defaults, str(root / "ifmxdevp2") + "/")
        assert is_scanned_top(layout.defaults, str(root / "ifmxdevm_b"))
        assert not is_scanned_top(layout.defaults, str(root / "data_top"))
        assert not is_scanned_top(layout.defaults, str(root / "ifmxdevp" / "nested"))

    def test_next_symlink_index(self, layout):
        assert next_symlink_index(layout.symlink_dir, "js_server", "data_dbs") == 1
        layout.make_chunk("data_dbs", 1, 1)
        layout.make_chunk("data_dbs", 2, 2)
        layout.make_chunk("other_dbs", 7, 3)
        assert next_symlink_index(layout.symlink_dir, "js_server", "data_dbs") == 3


class TestGenerateChunkPaths:
    def test_contiguous_pairs_continue_existing_chunks(self, layout):
        layout.make_chunk("data_dbs", 1, 6)
        layout.make_chunk("data_dbs", 2, 11)
        start = next_symlink_index(layout.symlink_dir, "js_server", "data_dbs")
        pairs = generate_chunk_paths(layout.defaults, "js_server", "data_dbs",
                                     count=2, start_index=start)

        assert [os.path.basename(p.symlink) for p in pairs] == [
            "js_server.data_dbs.P.003", "js_server.data_dbs.P.004"]
        assert [os.path.dirname(p.symlink) for p in pairs] == [layout.symlink_dir] * 2
        seqs = [raw_file_sequence(os.path.basename(p.raw_file)) for p in pairs]
        assert seqs == [12, 13]

    def test_mirror_pairs_swap_role_and_top(self, layout):
        pairs = generate_chunk_paths(layout.defaults, "js_server", "data_dbs",
                                     count=1, start_index=1, mirrored=True)
        pair = pairs[0]
        assert pair.mirror_symlink == layout.symlink("data_dbs", 1, role="m")
        assert pair.raw_file == layout.raw_file(1)
        assert pair.mirror_raw_file == layout.raw_file(1, mirror=True)


class TestRawFileValidation:
    def test_valid_raw_file(self, layout):
        validate_raw_file(layout.make_raw_file(1), layout.defaults)

    def test_rejects_path_outside_files_directory(self, layout):
        path = str(layout.root / "ifmxdevp" / "file.00001")
        with open(path, "w"):
            pass
        os.chmod(path, 0o660)
        with pytest.raises(InvalidName):
            validate_raw_file(path, layout.defaults)

    def test_rejects_wrong_mode(self, layout):
        path = layout.make_raw_file(1)
        os.chmod(path, 0o644)
        with pytest.raises(PermissionDenied):
            validate_raw_file(path, layout.defaults)

    def test_missing_file(self, layout):
        with pytest.raises(NotFound):
            validate_raw_file(layout.raw_file(8), layout.defaults)

    def test_reports_every_problem(self, layout):
        path = str(layout.root / "ifmxdevp" / "file.1")
        with open(path, "w"):
            pass
        os.chmod(path, 0o600)
        problems = raw_file_problems(path, [layout.defaults.primary_path],
                                     uid=os.getuid() + 1, gid=os.getgid())
        kinds = sorted(p.kind for p in problems)
        assert kinds == ["naming", "permission", "permission"]


class TestSymlinkValidation:
    def test_valid_symlink(self, layout):
        link, _ = layout.make_chunk("data_dbs", 1, 1)
        validate_symlink(link, layout.defaults, "js_server_shm", "data_dbs")

    def test_rejects_other_server(self, layout):
        link, _ = layout.make_chunk("data_dbs", 1, 1, server="other_server")
        with pytest.raises(InvalidName) as exc:
            validate_symlink(link, layout.defaults, "js_server", "data_dbs")
        assert "other_server" in exc.value.message

    def test_reports_every_naming_problem(self, layout):
        path = os.path.join("/elsewhere", "other.idx_dbs.m.1000")
        problems = symlink_problems(path, layout.defaults, "js_server", "data_dbs", must_exist=False)
        assert len(problems) == 5

    def test_missing_symlink(self, layout):
        with pytest.raises(NotFound):
            validate_symlink(layout.symlink("data_dbs", 4), layout.defaults, "js_server", "data_dbs")

    def test_bad_shape(self, layout):
        problems = symlink_problems(os.path.join(layout.symlink_dir, "data_dbs.P.001"),
                                    layout.defaults, "js_server", "data_dbs", must_exist=False)
        assert len(problems) == 1


class TestDirectoryValidation:
    def test_writable_directory(self, layout):
        validate_chunk_directory(layout.defaults.primary_dir())

    def test_missing_directory(self, layout):
        with pytest.raises(NotFound):
            validate_chunk_directory(str(layout.root / "nowhere"))

    def test_other_owner(self, layout):
        with pytest.raises(PermissionDenied):
            validate_chunk_directory(layout.defaults.primary_dir(), uid=os.getuid() + 1)
