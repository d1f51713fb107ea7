"""
Capability Registry Module.

Implements the service locator that every optional concern of the harness
(logging, notification, issue tracking, reporting, data reading) goes through:
- Ordered candidate factories declared once per capability kind.
- Lazy, lock-guarded resolution of the first available candidate.
- Graceful degradation to a no-op fallback when nothing is available.
- A process-wide registry with an explicit init/reset lifecycle.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence

from loguru import logger


class CapabilityConfigurationError(Exception):
    """Raised when a capability kind is requested or declared incorrectly."""

    pass


class Capability(ABC):
    """
    Base class for every pluggable backend.

    Subclasses implement ``is_available()`` as a cheap, local check (typically
    "is the required configuration present"). Fallback implementations set
    ``noop = True`` so consumers can tell a real backend from the discard sink.
    ``priority`` is informational; the declared candidate order decides.
    """

    noop: bool = False
    priority: int = 0

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether this backend can be used in the current environment."""

    @property
    def name(self) -> str:
        """Human-readable backend name used in logs."""
        return type(self).__name__


CapabilityFactory = Callable[[], Capability]


@dataclass(frozen=True)
class CandidateList:
    """Ordered candidates and the fallback declared for one capability kind."""

    kind: Hashable
    candidates: tuple
    fallback: CapabilityFactory


def _kind_name(kind: Hashable) -> str:
    return getattr(kind, "__name__", None) or str(kind)


class CapabilityRegistry:
    """
    Resolves and caches one backend per capability kind.

    Usage::

        registry = CapabilityRegistry()
        registry.register(
            NotificationService,
            [SlackNotificationService, ConsoleNotificationService],
            fallback=NullNotificationService,
        )
        service = registry.resolve(NotificationService)

    Thread Safety:
        The first ``resolve()`` for a kind runs under a per-kind lock and
        probes candidates exactly once. Later calls read the cache without
        taking any lock.
    """

    def __init__(self) -> None:
        self._declarations: Dict[Hashable, CandidateList] = {}
        self._resolved: Dict[Hashable, Capability] = {}
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._declare_lock = threading.Lock()

    def register(
        self,
        kind: Hashable,
        candidates: Sequence[CapabilityFactory],
        fallback: CapabilityFactory,
    ) -> None:
        """
        Declare the ordered candidates for a capability kind.

        Args:
            kind: Identifier of the capability (usually its abstract class).
            candidates: Factories tried in order; the first available wins.
            fallback: Factory for the no-op backend used when none is available.

        Raises:
            CapabilityConfigurationError: If the kind was already declared.
        """
        with self._declare_lock:
            if kind in self._declarations:
                raise CapabilityConfigurationError(
                    f"Capability '{_kind_name(kind)}' is already registered"
                )
            self._declarations[kind] = CandidateList(
                kind=kind,
                candidates=tuple(candidates),
                fallback=fallback,
            )
            self._locks[kind] = threading.Lock()
        logger.debug(
            f"Registered capability {_kind_name(kind)} with "
            f"{len(candidates)} candidate(s)"
        )

    def resolve(self, kind: Hashable) -> Capability:
        """
        Return the backend selected for ``kind``, resolving it on first use.

        Args:
            kind: A registered capability kind.

        Returns:
            The cached backend instance, or the kind's no-op fallback when no
            candidate reported itself available.

        Raises:
            CapabilityConfigurationError: If ``kind`` was never registered.
        """
        instance = self._resolved.get(kind)
        if instance is not None:
            return instance

        declaration = self._declarations.get(kind)
        if declaration is None:
            raise CapabilityConfigurationError(
                f"No candidates registered for capability '{_kind_name(kind)}'. "
                f"Registered: {[_kind_name(k) for k in self._declarations]}"
            )

        with self._locks[kind]:
            instance = self._resolved.get(kind)
            if instance is None:
                instance = self._select(declaration)
                self._resolved[kind] = instance
        return instance

    def _select(self, declaration: CandidateList) -> Capability:
        kind_name = _kind_name(declaration.kind)
        for factory in declaration.candidates:
            try:
                candidate = factory()
                available = candidate.is_available()
            except Exception as e:
                logger.debug(
                    f"Candidate {_kind_name(getattr(factory, 'func', factory))} for "
                    f"{kind_name} failed while probing: {e}"
                )
                continue

            if available:
                logger.info(f"{candidate.name} selected as {kind_name}")
                return candidate
            logger.debug(f"{candidate.name} is not available for {kind_name}")

        fallback = declaration.fallback()
        logger.info(f"No {kind_name} backend available, using {fallback.name}")
        return fallback

    def is_resolved(self, kind: Hashable) -> bool:
        """Check whether ``kind`` already has a cached backend."""
        return kind in self._resolved

    def is_registered(self, kind: Hashable) -> bool:
        """Check whether ``kind`` has declared candidates."""
        return kind in self._declarations

    def kinds(self) -> List[Hashable]:
        """Return the registered kinds in declaration order."""
        return list(self._declarations.keys())

    def reset(self) -> None:
        """Drop every cached backend so the next ``resolve()`` probes again."""
        for kind in list(self._declarations):
            with self._locks[kind]:
                self._resolved.pop(kind, None)
        logger.debug("Capability registry cache cleared")


# ---------------------------------------------------------------------------
# Process-wide registry
# ---------------------------------------------------------------------------

_registry: Optional[CapabilityRegistry] = None
_registry_lock = threading.Lock()


def init_registry(
    registry: Optional[CapabilityRegistry] = None,
    settings: Any = None,
) -> CapabilityRegistry:
    """
    Install the process-wide registry.

    Args:
        registry: A prepared registry. When omitted, the default registry is
                  built from ``settings`` (or from the settings file found on disk).
        settings: Settings used to build the default registry.

    Returns:
        The installed registry.
    """
    global _registry
    if registry is None:
        from harness.bootstrap import build_registry

        registry = build_registry(settings)
    with _registry_lock:
        _registry = registry
    return registry


def get_registry() -> CapabilityRegistry:
    """Return the process-wide registry, building the default one on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                from harness.bootstrap import build_registry

                _registry = build_registry()
    return _registry


def reset_registry() -> None:
    """Forget the process-wide registry; the next lookup builds a fresh one."""
    global _registry
    with _registry_lock:
        _registry = None


def installed_registry() -> Optional[CapabilityRegistry]:
    """Return the process-wide registry without building one."""
    return _registry


def replace_registry(
    expected: CapabilityRegistry, replacement: Optional[CapabilityRegistry]
) -> bool:
    """
    Swap in ``replacement`` only while ``expected`` is still installed.

    Returns:
        True if the swap happened.
    """
    global _registry
    with _registry_lock:
        if _registry is not expected:
            return False
        _registry = replacement
    return True


def resolve(kind: Hashable) -> Capability:
    """Resolve ``kind`` against the process-wide registry."""
    return get_registry().resolve(kind)
