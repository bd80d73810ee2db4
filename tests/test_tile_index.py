"""
Tests for the tile index: directory loading, coordinate resolution,
boundary rules, and snapshot-safe reloads.
"""

import logging
from dataclasses import replace

import pytest

from chuk_mcp_elevation.core.results import Coordinate
from chuk_mcp_elevation.core.tile_index import (
    Bounds,
    Failed,
    Loaded,
    TileIndex,
    TileSet,
    build_tile_set,
    is_raster_file,
    load_tile,
    scan_directory,
)

from .fakes import FakeOpener, FakeRasterSource, example_source, make_tile, populate


def _source(west, north, size=1.0, values=None):
    return FakeRasterSource(
        values or [[1, 2], [3, 4]], west=west, north=north, pixel_size=(size, size)
    )


# ===================================================================
# Loading
# ===================================================================


class TestIsRasterFile:
    @pytest.mark.parametrize("name", ["a.tif", "A.TIF", "b.tiff", "N30E115.hgt", "x.img", "y.asc"])
    def test_recognised(self, name):
        assert is_raster_file(name)

    @pytest.mark.parametrize("name", ["readme.md", "a.tif.aux.xml", "data.csv", "tif"])
    def test_ignored(self, name):
        assert not is_raster_file(name)


class TestLoadTile:
    def test_loaded_tile_describes_source(self, tmp_path):
        opener = FakeOpener({"srtm_60_06.tif": example_source()})
        outcome = load_tile(tmp_path / "srtm_60_06.tif", opener)

        assert isinstance(outcome, Loaded)
        tile = outcome.tile
        assert tile.filename == "srtm_60_06.tif"
        assert tile.bounds == Bounds(west=115.0, east=120.0, south=30.0, north=35.0)
        assert (tile.pixel_size_x, tile.pixel_size_y) == (2.5, 2.5)
        assert (tile.width, tile.height) == (2, 2)
        assert tile.nodata == -9999.0

    def test_open_failure_is_failed_outcome(self, tmp_path):
        outcome = load_tile(tmp_path / "broken.tif", FakeOpener({}))
        assert isinstance(outcome, Failed)
        assert outcome.filename == "broken.tif"
        assert "not a raster" in outcome.reason

    def test_degenerate_pixel_size_falls_back_to_span(self, tmp_path):
        source = example_source()
        source.pixel_size = lambda: (0.0, 2.5)
        outcome = load_tile(tmp_path / "t.tif", FakeOpener({"t.tif": source}))
        assert outcome.tile.pixel_size_x == 2.5

    def test_metadata_failure_closes_handle(self, tmp_path):
        source = example_source()
        source.nodata = lambda: (_ for _ in ()).throw(RuntimeError("bad metadata"))
        outcome = load_tile(tmp_path / "t.tif", FakeOpener({"t.tif": source}))
        assert isinstance(outcome, Failed)
        assert source.closed


class TestScanDirectory:
    def test_only_raster_extensions(self, tmp_path):
        populate(tmp_path, ["b.tif", "a.tif", "notes.txt"])
        opener = FakeOpener({"a.tif": _source(0, 1), "b.tif": _source(5, 1)})
        outcomes = scan_directory(tmp_path, opener)
        assert [o.tile.filename for o in outcomes] == ["a.tif", "b.tif"]
        assert "notes.txt" not in opener.opened

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            scan_directory(tmp_path / "missing", FakeOpener({}))


class TestBuildTileSet:
    def test_bad_file_skipped_and_logged(self, tmp_path, caplog):
        populate(tmp_path, ["a.tif", "bad.tif", "c.tif"])
        opener = FakeOpener({"a.tif": _source(0, 1), "c.tif": _source(5, 1)})

        with caplog.at_level(logging.WARNING):
            tile_set = build_tile_set(tmp_path, opener)

        assert [t.filename for t in tile_set] == ["a.tif", "c.tif"]
        assert "bad.tif" in caplog.text

    def test_missing_directory_gives_empty_set(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            tile_set = build_tile_set(tmp_path / "missing", FakeOpener({}))
        assert len(tile_set) == 0
        assert "Cannot read raster directory" in caplog.text

    def test_empty_directory(self, tmp_path):
        assert len(build_tile_set(tmp_path, FakeOpener({}))) == 0

    def test_real_geotiffs(self, tmp_path, write_geotiff):
        data = tmp_path / "tiles"
        write_geotiff("srtm_61_06.tif", [[1, 2], [3, 4]], 120.0, 35.0, 2.5, directory=data)
        write_geotiff("srtm_60_06.tif", [[5, 6], [7, 8]], 115.0, 35.0, 2.5, directory=data)
        (data / "corrupt.tif").write_bytes(b"garbage")

        tile_set = build_tile_set(data)
        try:
            assert [t.filename for t in tile_set] == ["srtm_60_06.tif", "srtm_61_06.tif"]
            assert tile_set.tiles[0].bounds.west == pytest.approx(115.0)
        finally:
            tile_set.retire()


# ===================================================================
# Resolution
# ===================================================================


class TestResolve:
    @pytest.fixture
    def index(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        index.load()
        return index

    def test_interior_point(self, index):
        assert index.resolve(Coordinate(116.0, 34.0)).filename == "srtm_60_06.tif"

    def test_outside_every_tile(self, index):
        assert index.resolve(Coordinate(0.0, 0.0)) is None

    def test_west_edge_included(self, index):
        assert index.resolve(Coordinate(115.0, 32.0)) is not None

    def test_east_edge_excluded(self, index):
        assert index.resolve(Coordinate(120.0, 32.0)) is None

    def test_south_edge_excluded(self, index):
        assert index.resolve(Coordinate(119.9, 30.0)) is None

    def test_north_edge_included(self, index):
        assert index.resolve(Coordinate(116.0, 35.0)) is not None

    def test_south_edge_on_lookup_is_a_coverage_miss(self, index):
        tile, inside = index.lookup(Coordinate(116.0, 30.0))
        assert tile is None
        assert inside is False


class TestTileSetLookup:
    def test_first_match_wins_by_filename(self):
        a = make_tile(_source(0, 2, values=[[10, 10], [10, 10]]), "b_second.tif")
        b = make_tile(_source(0, 2, values=[[20, 20], [20, 20]]), "a_first.tif")
        tile_set = TileSet([a, b])
        tile, _ = tile_set.lookup(Coordinate(0.5, 1.5))
        assert tile.filename == "a_first.tif"

    def test_adjacent_tiles_share_edge_without_overlap(self):
        west = make_tile(_source(0, 2), "west.tif")
        east = make_tile(_source(2, 2), "east.tif")
        tile_set = TileSet([west, east])
        tile, _ = tile_set.lookup(Coordinate(2.0, 1.5))
        assert tile.filename == "east.tif"

    def test_stacked_tiles_share_edge_without_overlap(self):
        north = make_tile(_source(0, 4), "north.tif")
        south = make_tile(_source(0, 2), "south.tif")
        tile_set = TileSet([north, south])
        tile, _ = tile_set.lookup(Coordinate(0.5, 2.0))
        assert tile.filename == "south.tif"

    def test_bounds_hit_outside_grid_reports_inside_bounds(self):
        # Declared bounds wider than the pixel grid covers
        tile = replace(make_tile(_source(0, 2)), bounds=Bounds(west=0, east=5, south=0, north=2))
        found, inside = TileSet([tile]).lookup(Coordinate(4.0, 1.0))
        assert found is None
        assert inside is True

    def test_falls_through_to_next_tile_when_grid_misses(self):
        wide = replace(
            make_tile(_source(0, 2), "a.tif"), bounds=Bounds(west=0, east=5, south=0, north=2)
        )
        real = make_tile(_source(4, 2), "b.tif")
        found, _ = TileSet([wide, real]).lookup(Coordinate(4.5, 1.0))
        assert found.filename == "b.tif"

    def test_unsamplable_tile_matches_on_bounds(self):
        tile = replace(make_tile(_source(0, 2)), pixel_size_x=-1.0)
        found, inside = TileSet([tile]).lookup(Coordinate(0.5, 1.5))
        assert found is tile
        assert inside is True


# ===================================================================
# Snapshots and reload
# ===================================================================


class TestTileSetLifecycle:
    def test_retire_without_readers_closes_handles(self, example_tile):
        tile_set = TileSet([example_tile])
        tile_set.retire()
        assert tile_set.closed
        assert example_tile.handle.closed

    def test_retire_with_reader_defers_close(self, example_tile):
        tile_set = TileSet([example_tile]).acquire()
        tile_set.retire()
        assert not example_tile.handle.closed
        tile_set.release()
        assert example_tile.handle.closed

    def test_release_without_retire_keeps_open(self, example_tile):
        tile_set = TileSet([example_tile]).acquire()
        tile_set.release()
        assert not tile_set.closed


class TestTileIndexReload:
    def test_load_returns_count(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        assert index.load() == 1
        assert len(index) == 1

    def test_reload_picks_up_new_files(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        index.load()

        populate(data_dir, ["srtm_61_06.tif"])
        example_opener.sources["srtm_61_06.tif"] = _source(120, 35)

        assert index.reload() == 2
        assert [t.filename for t in index.tiles] == ["srtm_60_06.tif", "srtm_61_06.tif"]

    def test_load_switches_directory(self, tmp_path, example_opener):
        index = TileIndex(tmp_path / "empty", example_opener)
        assert index.load() == 0
        other = populate(tmp_path / "other", ["srtm_60_06.tif"])
        assert index.load(other) == 1
        assert index.directory == other

    def test_snapshot_survives_reload(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        index.load()
        old_handle = index.tiles[0].handle

        with index.snapshot() as tiles:
            example_opener.sources["srtm_60_06.tif"] = example_source()
            index.reload()
            assert not old_handle.closed
            tile, _ = tiles.lookup(Coordinate(116.0, 34.0))
            assert tile.handle is old_handle

        assert old_handle.closed
        assert index.tiles[0].handle is not old_handle

    def test_list_tiles(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        index.load()
        assert index.list_tiles() == [
            {
                "filename": "srtm_60_06.tif",
                "bounds": {"west": 115.0, "east": 120.0, "south": 30.0, "north": 35.0},
                "pixel_size": [2.5, 2.5],
                "raster_size": [2, 2],
                "nodata": -9999.0,
            }
        ]

    def test_close_releases_handles(self, data_dir, example_opener):
        index = TileIndex(data_dir, example_opener)
        index.load()
        handle = index.tiles[0].handle
        index.close()
        assert handle.closed
        assert len(index) == 0
