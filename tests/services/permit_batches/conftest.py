"""Shared fixtures for permit batch tests."""
import pytest


def build_permit(i: int, **overrides) -> dict:
    """Build a cleaned, geocoded permit record."""
    permit = {
        "County": "Tarrant",
        "Street Address": f"{100 + i} MAIN ST",
        "City": "Fort Worth",
        "ZipCode": "76116",
        "State": "TX",
        "Latitude": 32.7,
        "Longitude": -97.4,
        "Geocode Source": "google",
        "Contract Amount": 15000 + i,
        "Contract Date": "2024-05-01T12:00:00Z",
        "Contractor Name": "Blue Haven Pools",
        "Contractor Address": "500 Commerce St, Fort Worth TX",
        "Contractor Phone": "817-555-0100",
        "Type": "Pool",
        "Owner Name": f"Owner {i}",
        "Owner Phone": "N/A",
    }
    permit.update(overrides)
    return permit


@pytest.fixture
def make_permit():
    """The single-permit builder, for tests that tweak fields."""
    return build_permit


@pytest.fixture
def permits_factory():
    """Callable returning n distinct permits starting at index `start`."""
    def _make(n: int, start: int = 0) -> list[dict]:
        return [build_permit(i) for i in range(start, start + n)]
    return _make


@pytest.fixture
def data_dir(tmp_path):
    """Temp data directory for registry, batches and logs."""
    d = tmp_path / "data"
    d.mkdir()
    return d
