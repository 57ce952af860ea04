"""Testing fakes – in-memory doubles for the producer, mounter and balancer ports."""
from secret_volume.testing.fakes.balancer import FakeLoadBalancer
from secret_volume.testing.fakes.mounter import RecordingMounter
from secret_volume.testing.fakes.secrets import FakeSecretProducer

__all__ = [
    "FakeLoadBalancer",
    "FakeSecretProducer",
    "RecordingMounter",
]
