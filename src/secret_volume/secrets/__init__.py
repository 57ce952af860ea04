"""Secret producers and bundle implementations."""

from secret_volume.secrets.balancer import LoadBalancer, SrvLoadBalancer, StaticLoadBalancer
from secret_volume.secrets.merge import SecretsMerger, decode_secret_file, merge_secrets, write_json, write_merged
from secret_volume.secrets.port import SecretProducer, SecretProducers
from secret_volume.secrets.single import SingleFileSecrets
from secret_volume.secrets.talos import TalosProducer
from secret_volume.secrets.targz import TarGzSecrets, open_targz

__all__ = [
    "LoadBalancer",
    "SecretProducer",
    "SecretProducers",
    "SecretsMerger",
    "SingleFileSecrets",
    "SrvLoadBalancer",
    "StaticLoadBalancer",
    "TalosProducer",
    "TarGzSecrets",
    "decode_secret_file",
    "merge_secrets",
    "open_targz",
    "write_json",
    "write_merged",
]
