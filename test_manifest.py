"""Tests for manifest parsing and resolution."""

from conftest import FakeUpstreamClient, manifest_payload

from cielo_abierto.data.errors import FormatError, UpstreamError
from cielo_abierto.data.manifest import ManifestResolver, parse_manifest


def test_parse_manifest():
    payload = manifest_payload(
        4102,
        photos=[
            {"sol": 0, "earth_date": "2012-08-06", "total_photos": 3702, "cameras": ["CHEMCAM", "FHAZ"]},
            {"sol": 4100, "earth_date": "2024-02-17", "total_photos": 120, "cameras": ["MAST", "NAVCAM"]},
        ],
    )

    manifest = parse_manifest(payload, "Curiosity")

    assert manifest.rover == "curiosity"
    assert manifest.max_sol == 4102
    assert manifest.max_date == "2024-02-19"
    assert manifest.total_photos == 695670
    assert [s.sol for s in manifest.sols] == [0, 4100]
    assert manifest.sols[1].cameras == ("MAST", "NAVCAM")


def test_parse_manifest_without_max_sol():
    assert parse_manifest({"photo_manifest": {"max_date": "2024-01-01"}}, "curiosity") is None
    assert parse_manifest({"error": "rate limited"}, "curiosity") is None
    assert parse_manifest([], "curiosity") is None


def test_parse_manifest_skips_bad_sol_entries():
    payload = manifest_payload(10, photos=[{"sol": "x"}, "junk", {"sol": 5, "cameras": ["navcam"]}])

    manifest = parse_manifest(payload, "spirit")

    assert [s.sol for s in manifest.sols] == [5]
    assert manifest.sols[0].cameras == ("NAVCAM",)


def test_parse_manifest_keeps_entries_with_bad_photo_counts():
    payload = manifest_payload(
        6,
        photos=[
            {"sol": 5, "total_photos": 3, "cameras": ["NAVCAM"]},
            {"sol": 6, "total_photos": "n/a", "cameras": ["MAHLI"]},
            {"sol": float("inf"), "total_photos": 1},
        ],
    )

    manifest = parse_manifest(payload, "curiosity")

    assert [(s.sol, s.total_photos) for s in manifest.sols] == [(5, 3), (6, 0)]
    assert manifest.latest_sol_with("MAHLI") == 6


def test_parse_manifest_non_finite_numbers():
    payload = manifest_payload(4102)
    payload["photo_manifest"]["total_photos"] = float("inf")
    assert parse_manifest(payload, "curiosity").total_photos == 0

    payload["photo_manifest"]["max_sol"] = float("inf")
    assert parse_manifest(payload, "curiosity") is None

    payload["photo_manifest"]["max_sol"] = float("nan")
    assert parse_manifest(payload, "curiosity") is None


def test_latest_sol_with_camera():
    payload = manifest_payload(
        4102,
        photos=[
            {"sol": 3990, "cameras": ["MAHLI"]},
            {"sol": 4000, "cameras": ["MAHLI", "NAVCAM"]},
            {"sol": 4102, "cameras": ["NAVCAM"]},
        ],
    )
    manifest = parse_manifest(payload, "curiosity")

    assert manifest.latest_sol_with("MAHLI") == 4000
    assert manifest.latest_sol_with(None) == 4102
    assert manifest.latest_sol_with("MARDI") == 4102


class TestManifestResolver:

    def test_resolves_manifest(self):
        client = FakeUpstreamClient(manifest=manifest_payload(5111))

        manifest = ManifestResolver(client).resolve("opportunity")

        assert manifest.max_sol == 5111
        assert client.calls == [("get_rover_manifest", {"rover": "opportunity"})]

    def test_upstream_failure_is_absent(self):
        client = FakeUpstreamClient(manifest=UpstreamError("boom", status=500))

        assert ManifestResolver(client).resolve("curiosity") is None

    def test_format_failure_is_absent(self):
        client = FakeUpstreamClient(manifest=FormatError("html", status=200))

        assert ManifestResolver(client).resolve("curiosity") is None

    def test_unusable_payload_is_absent(self):
        client = FakeUpstreamClient(manifest={"photo_manifest": {}})

        assert ManifestResolver(client).resolve("curiosity") is None

    def test_non_finite_max_sol_is_absent(self):
        client = FakeUpstreamClient(manifest=manifest_payload(float("inf")))

        assert ManifestResolver(client).resolve("curiosity") is None
