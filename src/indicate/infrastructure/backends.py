"""Backend client façade — lazily created, memoized clients.

Each data category (repository info, advisories, unsafe usage) lives in its
own :class:`LazySlot`. A slot runs its factory at most once: the first
successful result is kept for the adapter lifetime, and a failed creation is
remembered so later accesses fail the same way without retrying. Creating an
advisory database or a geiger report is an expensive remote or bulk
operation, so nothing is created until a query actually needs it.

Single-writer: slots are owned by one adapter and touched only from the
evaluation thread. A parallel evaluator would need a lock around
``get_or_create``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from indicate.errors import BackendUnavailableError, IndicateError

if TYPE_CHECKING:
    from indicate.infrastructure.advisories import AdvisoryClient
    from indicate.infrastructure.geiger import GeigerClient
    from indicate.infrastructure.github import GitHubClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LazySlot(Generic[T]):
    """An optional slot, initialized at most once by *factory*."""

    def __init__(self, name: str, factory: Callable[[], T]) -> None:
        self.name = name
        self._factory = factory
        self._value: T | None = None
        self._failure: BackendUnavailableError | None = None

    @classmethod
    def of(cls, name: str, value: T) -> LazySlot[T]:
        """A slot that is already filled."""
        slot = cls(name, lambda: value)
        slot._value = value
        return slot

    @property
    def initialized(self) -> bool:
        return self._value is not None

    def get_or_create(self) -> T:
        """Return the client, creating it on first call.

        Raises:
            BackendUnavailableError: Creation failed now or on an earlier call.
        """
        if self._value is not None:
            return self._value
        if self._failure is not None:
            raise self._failure

        logger.debug("Creating %s client", self.name)
        try:
            value = self._factory()
        except (IndicateError, OSError, ValueError) as exc:
            self._failure = BackendUnavailableError(self.name, str(exc))
            logger.error("Could not create %s client: %s", self.name, exc)
            raise self._failure from exc

        self._value = value
        return value


@dataclass(frozen=True)
class BackendClients:
    """The three backend slots an adapter draws enrichment data from."""

    github: LazySlot[GitHubClient]
    advisories: LazySlot[AdvisoryClient]
    geiger: LazySlot[GeigerClient]
