"""
Unit tests for world sources (worldsnap/backup/sources.py).

Tests world filtering, traversal order and the exclusion rule.
"""

import os

import pytest

from worldsnap.backup.sources import (
    DEFAULT_EXCLUDE_PATTERNS,
    filter_existing,
    is_excluded,
    walk_world
)
from worldsnap.models import KIND_DIRECTORY, KIND_FILE


class TestFilterExisting:
    """Test filter_existing."""

    def test_keeps_existing_directories_in_order(self, in_tmp_path):
        """Missing worlds are dropped, the rest keep their order."""
        (in_tmp_path / 'world').mkdir()
        (in_tmp_path / 'world_nether').mkdir()

        result = filter_existing(['world_nether', 'world_the_end', 'world'])

        assert result == ['world_nether', 'world']

    def test_drops_regular_files(self, tmp_path):
        """A file with a world's name is not a world."""
        (tmp_path / 'world').write_text('not a directory')
        (tmp_path / 'world_nether').mkdir()

        result = filter_existing([str(tmp_path / 'world'), str(tmp_path / 'world_nether')])

        assert result == [str(tmp_path / 'world_nether')]

    def test_empty_input(self):
        """No candidates gives no worlds."""
        assert filter_existing([]) == []

    def test_all_missing(self, tmp_path):
        """Nonexistent candidates are not an error."""
        assert filter_existing([str(tmp_path / 'a'), str(tmp_path / 'b')]) == []

    def test_result_is_subsequence(self, tmp_path):
        """Output is always an order-preserving subsequence of the input."""
        candidates = []
        for index in range(8):
            path = tmp_path / f'w{index}'
            if index % 3 != 0:
                path.mkdir()
            candidates.append(str(path))

        result = filter_existing(candidates)

        positions = [candidates.index(path) for path in result]
        assert positions == sorted(positions)
        assert result == [path for path in candidates if os.path.isdir(path)]

    def test_accepts_generator(self, tmp_path):
        """Candidates can be any iterable."""
        (tmp_path / 'world').mkdir()

        result = filter_existing(str(tmp_path / name) for name in ('world', 'gone'))

        assert result == [str(tmp_path / 'world')]


class TestIsExcluded:
    """Test the exclusion rule."""

    @pytest.mark.parametrize("name,expected", [
        ("session.lock", True),
        ("level.dat.tmp", True),
        (".tmp", True),
        ("level.dat", False),
        ("session.lock.bak", False),
        ("my_session.lock", False),
        ("level.tmp.dat", False),
        ("LEVEL.TMP", False),
    ])
    def test_default_patterns(self, name, expected):
        """Only session.lock and *.tmp are excluded by default."""
        assert is_excluded(name, DEFAULT_EXCLUDE_PATTERNS) is expected

    def test_custom_patterns(self):
        """Patterns are shell-style globs on the base name."""
        assert is_excluded('cache.db', ['*.db'])
        assert not is_excluded('session.lock', ['*.db'])

    def test_no_patterns(self):
        """An empty pattern list excludes nothing."""
        assert not is_excluded('session.lock', [])


class TestWalkWorld:
    """Test walk_world traversal."""

    def test_root_first_then_depth_first_by_name(self, tmp_path):
        """Parents come before children, siblings in name order."""
        world = tmp_path / 'world'
        (world / 'b' / 'inner').mkdir(parents=True)
        (world / 'a').mkdir()
        (world / 'c.txt').write_text('c')
        (world / 'b' / 'inner' / 'deep.txt').write_text('deep')
        (world / 'a' / 'one.txt').write_text('1')

        paths = [os.path.relpath(entry.path, tmp_path) for entry in walk_world(str(world))]

        assert paths == [
            'world',
            os.path.join('world', 'a'),
            os.path.join('world', 'a', 'one.txt'),
            os.path.join('world', 'b'),
            os.path.join('world', 'b', 'inner'),
            os.path.join('world', 'b', 'inner', 'deep.txt'),
            os.path.join('world', 'c.txt'),
        ]

    def test_kinds_and_sizes(self, tmp_path):
        """Files report their size, directories report kind directory."""
        world = tmp_path / 'world'
        world.mkdir()
        (world / 'data.bin').write_bytes(b'x' * 1234)

        entries = list(walk_world(str(world)))

        assert entries[0].kind == KIND_DIRECTORY
        assert entries[0].is_dir
        assert entries[1].kind == KIND_FILE
        assert entries[1].size == 1234
        assert entries[1].name == 'data.bin'

    def test_paths_keep_relative_form(self, in_tmp_path):
        """Paths are built on the root exactly as given."""
        (in_tmp_path / 'world' / 'region').mkdir(parents=True)

        paths = [entry.path for entry in walk_world('world')]

        assert paths == ['world', os.path.join('world', 'region')]

    def test_is_lazy(self, tmp_path):
        """Nothing below the root is read before it is asked for."""
        world = tmp_path / 'world'
        world.mkdir()

        walker = walk_world(str(world))
        first = next(walker)
        (world / 'late.txt').write_text('added after the root was yielded')

        assert first.path == str(world)
        assert [entry.name for entry in walker] == ['late.txt']

    def test_missing_root_raises(self, tmp_path):
        """A vanished world surfaces as an OSError."""
        with pytest.raises(FileNotFoundError):
            list(walk_world(str(tmp_path / 'gone')))

    def test_does_not_descend_into_symlinked_directories(self, tmp_path):
        """Links are reported as files and not followed."""
        target = tmp_path / 'elsewhere'
        target.mkdir()
        (target / 'secret.txt').write_text('outside the world')
        world = tmp_path / 'world'
        world.mkdir()
        os.symlink(target, world / 'link')

        entries = list(walk_world(str(world)))

        assert [entry.name for entry in entries] == ['world', 'link']
        assert entries[1].kind == KIND_FILE
