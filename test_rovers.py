"""Tests for the rover catalogue, camera validation and landscape preference."""

import logging

import pytest
from conftest import rover_photo

from cielo_abierto.data.normalizer import RecordSource, normalize_records
from cielo_abierto.data.rovers import (
    LANDSCAPE_CAMERAS,
    ROVERS,
    Rover,
    parse_rover,
    prefer_landscape,
    validate_camera,
)


def photos_for(*cameras):
    records = [rover_photo(i, camera) for i, camera in enumerate(cameras, start=1)]
    return normalize_records(records, RecordSource.ROVER_PHOTOS, "curiosity")


class TestParseRover:

    def test_case_insensitive(self):
        assert parse_rover("Curiosity") is Rover.CURIOSITY
        assert parse_rover(" PERSEVERANCE ") is Rover.PERSEVERANCE
        assert parse_rover(Rover.SPIRIT) is Rover.SPIRIT

    def test_unknown_rover(self):
        with pytest.raises(ValueError, match="Unknown rover"):
            parse_rover("sojourner")


class TestValidateCamera:

    def test_absent_filter_stays_absent(self):
        assert validate_camera("curiosity", None) is None
        assert validate_camera("curiosity", "  ") is None

    def test_valid_camera_is_canonicalized(self):
        assert validate_camera("curiosity", "navcam") == "NAVCAM"
        assert validate_camera("perseverance", "MCZ_LEFT") == "MCZ_LEFT"

    def test_invalid_camera_is_dropped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert validate_camera("perseverance", "PANCAM") is None

        assert "PANCAM" in caplog.text

    @pytest.mark.parametrize("rover", list(Rover))
    def test_cameras_of_other_rovers_are_dropped(self, rover):
        own = ROVERS[rover].cameras
        foreign = {c for spec in ROVERS.values() for c in spec.cameras} - own

        for camera in foreign:
            assert validate_camera(rover, camera) is None
        for camera in own:
            assert validate_camera(rover, camera) == camera

    def test_unknown_camera_name(self):
        assert validate_camera("spirit", "HUBBLE") is None


class TestPreferLandscape:

    def test_keeps_only_landscape_when_present(self):
        photos = photos_for("NAVCAM", "MAHLI")

        preferred = prefer_landscape(photos)

        assert [p.camera.name for p in preferred] == ["NAVCAM"]

    def test_returns_input_when_no_landscape(self):
        photos = photos_for("MAHLI", "CHEMCAM")

        assert prefer_landscape(photos) == photos

    def test_preserves_order(self):
        photos = photos_for("MAST", "FHAZ", "NAVCAM", "MARDI")

        assert [p.camera.name for p in prefer_landscape(photos)] == ["MAST", "NAVCAM"]

    def test_empty(self):
        assert prefer_landscape([]) == []


def test_landscape_cameras_belong_to_some_rover():
    known = {c for spec in ROVERS.values() for c in spec.cameras}
    assert LANDSCAPE_CAMERAS <= known


def test_only_perseverance_has_raw_feed():
    feeds = {rover: spec.raw_feed_category for rover, spec in ROVERS.items()}
    assert feeds[Rover.PERSEVERANCE] == "mars2020"
    assert all(feed is None for rover, feed in feeds.items() if rover is not Rover.PERSEVERANCE)
