"""
secret_volume – tmpfs-backed secret volumes populated from remote secret stores.

Import path convention::

    from secret_volume.api import Volume, SecretSource
    from secret_volume.volume import VolumeManager, TmpfsMounter
    from secret_volume.secrets import TalosProducer, SrvLoadBalancer
    from secret_volume.adapters.fastapi import create_app
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
