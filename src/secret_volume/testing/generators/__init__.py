"""Testing generators – archives and volumes for tests."""
from secret_volume.testing.generators.archive import build_targz
from secret_volume.testing.generators.volume import VolumeBuilder

__all__ = ["VolumeBuilder", "build_targz"]
