"""
Per-engine cache of base quadrature rules keyed by point count.

Rules for a given point count never change, so entries are computed
lazily and kept for the lifetime of the cache.
"""

import logging
import threading
from typing import Callable, Dict

from lognormal_mie.core.constants import DEFAULT_QUADRATURE_KIND
from lognormal_mie.quadrature.rules import QuadratureRule, quadrature

logger = logging.getLogger(__name__)


class QuadratureCache:
    """Thread-safe memo of quadrature rules.

    A registry lock guards the per-key locks; each point count has its own
    lock so that a rule is generated at most once even when several
    threads ask for it simultaneously, while lookups of other point counts
    are not blocked by a slow generation.

    Example:
        >>> cache = QuadratureCache()
        >>> rule = cache.get(200)
        >>> cache.get(200) is rule
        True
    """

    def __init__(
        self,
        kind: str = DEFAULT_QUADRATURE_KIND,
        generator: Callable[[str, int], QuadratureRule] = quadrature,
    ):
        """Initialize an empty cache.

        Args:
            kind: Base rule identifier passed to ``generator``
            generator: Callable producing a QuadratureRule for (kind, npts)
        """
        self.kind = kind
        self._generator = generator
        self._rules: Dict[int, QuadratureRule] = {}
        self._key_locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self.misses = 0

    def get(self, npts: int) -> QuadratureRule:
        """Return the rule with ``npts`` nodes, generating it on first use."""
        npts = int(npts)
        rule = self._rules.get(npts)
        if rule is not None:
            return rule

        with self._registry_lock:
            key_lock = self._key_locks.setdefault(npts, threading.Lock())

        with key_lock:
            rule = self._rules.get(npts)
            if rule is None:
                logger.debug(f"Generating {self.kind} quadrature with {npts} points")
                rule = self._generator(self.kind, npts)
                if rule.npts != npts:
                    raise ValueError(
                        f"Quadrature generator returned {rule.npts} points, expected {npts}"
                    )
                self._rules[npts] = rule
                self.misses += 1

        return rule

    def clear(self) -> None:
        """Drop all cached rules."""
        with self._registry_lock:
            self._rules.clear()
            self._key_locks.clear()

    def __contains__(self, npts: int) -> bool:
        return int(npts) in self._rules

    def __len__(self) -> int:
        return len(self._rules)
