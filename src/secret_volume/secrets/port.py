"""Secrets – SecretProducer port."""
from __future__ import annotations

import abc
from typing import Mapping

from secret_volume.api.secrets import Secrets
from secret_volume.api.volume import SecretSource, Volume


class SecretProducer(abc.ABC):
    """Produces the :class:`Secrets` bundle for a volume."""

    @abc.abstractmethod
    async def secrets_for(self, volume: Volume) -> Secrets:
        """Fetch secrets for *volume*; the caller owns and closes the bundle."""


SecretProducers = Mapping[SecretSource, SecretProducer]

__all__ = ["SecretProducer", "SecretProducers"]
