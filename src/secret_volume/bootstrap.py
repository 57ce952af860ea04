"""Bootstrap – build the service object graph from ServiceSettings."""
from __future__ import annotations

import logging
import os
import sys

from secret_volume.api.volume import SecretSource
from secret_volume.config.service import ServiceSettings
from secret_volume.config.validation.errors import MissingRequiredSettingError
from secret_volume.secrets.balancer import LoadBalancer, SrvLoadBalancer, StaticLoadBalancer
from secret_volume.secrets.port import SecretProducer
from secret_volume.secrets.talos import TalosProducer
from secret_volume.volume.manager import VolumeManager
from secret_volume.volume.mounter import Mounter, NoopMounter
from secret_volume.volume.tmpfs import TmpfsMounter

logger = logging.getLogger(__name__)


def build_mounter(settings: ServiceSettings) -> Mounter:
    """A tmpfs mounter on Linux; a no-op mounter in virtual mode or elsewhere.

    Virtual mode creates the parent directory so the service can run without a
    pre-provisioned mount root.
    """
    if settings.virtual:
        os.makedirs(settings.parent, mode=0o700, exist_ok=True)
        logger.info("bootstrap.mounter kind=noop parent=%s virtual=true", settings.parent)
        return NoopMounter(settings.parent)
    if not sys.platform.startswith("linux"):
        logger.warning("bootstrap.mounter kind=noop parent=%s platform=%s", settings.parent, sys.platform)
        return NoopMounter(settings.parent)
    logger.info(
        "bootstrap.mounter kind=tmpfs parent=%s max_size_mb=%d mode=%s",
        settings.parent,
        settings.max_size_mb,
        settings.mount_mode,
    )
    return TmpfsMounter(settings.parent, max_size_mb=settings.max_size_mb, mode=settings.mount_mode_bits)


def build_balancer(settings: ServiceSettings) -> LoadBalancer:
    if settings.talos_addresses:
        return StaticLoadBalancer(settings.talos_addresses)
    if not settings.talos_srv:
        raise MissingRequiredSettingError("talos_srv")
    return SrvLoadBalancer(settings.talos_srv, nameserver=settings.nameserver)


def build_producers(settings: ServiceSettings) -> dict[SecretSource, SecretProducer]:
    talos = TalosProducer(
        build_balancer(settings),
        timeout=settings.fetch_timeout,
        verify_server_certificate=settings.verify_server_certificate,
        ca_bundle=settings.ca_bundle,
    )
    return {SecretSource.TALOS: talos}


def build_manager(settings: ServiceSettings) -> VolumeManager:
    return VolumeManager(
        build_mounter(settings),
        build_producers(settings),
        metadata_file=settings.metadata_file,
        merged_secrets_file=settings.merged_secrets_file,
    )


__all__ = ["build_balancer", "build_manager", "build_mounter", "build_producers"]
