"""Testing support – fakes and generators for code built on secret_volume.

Usage::

    from secret_volume.testing import FakeSecretProducer, RecordingMounter, build_targz
"""

from secret_volume.testing.fakes import FakeLoadBalancer, FakeSecretProducer, RecordingMounter
from secret_volume.testing.generators import VolumeBuilder, build_targz

__all__ = [
    "FakeLoadBalancer",
    "FakeSecretProducer",
    "RecordingMounter",
    "VolumeBuilder",
    "build_targz",
]
