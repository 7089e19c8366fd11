"""Tests for quadrature rules, interval shifting and the rule cache."""

import threading
import time

import numpy as np
import pytest

from lognormal_mie.quadrature import (
    QuadratureCache,
    QuadratureRule,
    RadialGrid,
    quadrature,
    shift_quadrature,
    unshift_quadrature,
)


class TestBaseQuadrature:
    """Tests for the Gauss-Legendre base rule."""

    def test_rule_size(self):
        """Rule has the requested number of paired nodes and weights."""
        rule = quadrature("gauss_legendre", 17)
        assert rule.npts == 17
        assert len(rule.abscissas) == len(rule.weights) == 17

    def test_nodes_inside_canonical_interval(self):
        """Nodes are ordered and lie strictly inside [-1, 1]."""
        rule = quadrature("gaussian", 50)
        assert np.all(np.diff(rule.abscissas) > 0)
        assert np.all(np.abs(rule.abscissas) < 1)

    def test_weights_sum_to_interval_length(self):
        """Weights on [-1, 1] sum to 2."""
        rule = quadrature("gauss_legendre", 200)
        assert np.isclose(rule.weights.sum(), 2.0)

    def test_exact_for_polynomials(self):
        """An n-point rule integrates x^(2n-2) exactly."""
        rule = quadrature("gauss_legendre", 5)
        integral = np.sum(rule.weights * rule.abscissas**8)
        assert np.isclose(integral, 2.0 / 9.0, rtol=1e-12)

    def test_unknown_kind(self):
        """Unsupported rule kinds are rejected."""
        with pytest.raises(ValueError, match="Unknown quadrature kind"):
            quadrature("clenshaw_curtis", 10)

    @pytest.mark.parametrize("npts", [0, -3, 2.5])
    def test_invalid_point_count(self, npts):
        """Point count must be a positive integer."""
        with pytest.raises(ValueError):
            quadrature("gauss_legendre", npts)

    def test_mismatched_rule_rejected(self):
        """A rule with unequal node and weight counts cannot be built."""
        with pytest.raises(ValueError, match="Mismatched"):
            QuadratureRule(abscissas=np.zeros(3), weights=np.ones(4))

    def test_rule_is_read_only(self):
        """Cached rules cannot be modified in place."""
        rule = quadrature("gauss_legendre", 4)
        with pytest.raises(ValueError):
            rule.weights[0] = 1.0


class TestShiftQuadrature:
    """Tests for the affine map onto [a, b]."""

    def test_affine_map(self):
        """Nodes and weights follow r = ((a+b) + (b-a)x)/2, w' = (b-a)w/2."""
        rule = QuadratureRule(abscissas=np.array([-1.0, 0.0, 0.5]), weights=np.array([0.2, 0.6, 1.2]))
        grid = shift_quadrature(rule, 2.0, 6.0)

        assert isinstance(grid, RadialGrid)
        assert np.allclose(grid.radius, [2.0, 4.0, 5.0])
        assert np.allclose(grid.weights, [0.4, 1.2, 2.4])

    @pytest.mark.parametrize("a, b", [(0.0, 1.0), (0.143, 7.0), (-5.0, -1.0), (1e-3, 1e3)])
    def test_weight_sum_scaling(self, a, b):
        """Shifted weights sum to (b - a)/2 times the canonical sum."""
        rule = quadrature("gauss_legendre", 64)
        grid = shift_quadrature(rule, a, b)
        assert np.isclose(grid.weights.sum(), (b - a) * rule.weights.sum() / 2.0)
        assert np.isclose(grid.weights.sum(), b - a)

    @pytest.mark.parametrize("a, b", [(0.1, 0.2), (3.0, 11999.0), (-2.0, 2.0)])
    def test_round_trip(self, a, b):
        """Shifting and unshifting reproduces the original rule."""
        rule = quadrature("gauss_legendre", 33)
        back = unshift_quadrature(shift_quadrature(rule, a, b), a, b)

        assert np.allclose(back.abscissas, rule.abscissas, atol=1e-12)
        assert np.allclose(back.weights, rule.weights, rtol=1e-10)

    def test_nodes_within_interval(self):
        """Shifted nodes stay inside (a, b) and keep their ordering."""
        rule = quadrature("gauss_legendre", 100)
        grid = shift_quadrature(rule, 0.3, 4.2)
        assert np.all(grid.radius > 0.3) and np.all(grid.radius < 4.2)
        assert np.all(np.diff(grid.radius) > 0)

    def test_integrates_on_interval(self):
        """Shifted rule integrates exp(r) over [1, 3]."""
        grid = shift_quadrature(quadrature("gauss_legendre", 20), 1.0, 3.0)
        assert np.isclose(np.sum(grid.weights * np.exp(grid.radius)), np.e**3 - np.e)

    @pytest.mark.parametrize("a, b", [(1.0, 1.0), (2.0, 1.0), (0.0, np.inf)])
    def test_degenerate_interval(self, a, b):
        """a >= b or non-finite bounds are caller errors."""
        rule = quadrature("gauss_legendre", 8)
        with pytest.raises(ValueError):
            shift_quadrature(rule, a, b)


class TestQuadratureCache:
    """Tests for the per-engine rule cache."""

    def test_lazy_population(self):
        """Cache starts empty and stores rules on first use."""
        cache = QuadratureCache()
        assert len(cache) == 0
        assert 30 not in cache

        rule = cache.get(30)
        assert rule.npts == 30
        assert 30 in cache
        assert len(cache) == 1

    def test_reuse(self):
        """Repeated lookups return the same object without regenerating."""
        cache = QuadratureCache()
        first = cache.get(40)
        second = cache.get(40)

        assert first is second
        assert cache.misses == 1

    def test_keyed_by_point_count(self):
        """Different point counts give different rules."""
        cache = QuadratureCache()
        assert cache.get(10).npts == 10
        assert cache.get(11).npts == 11
        assert cache.misses == 2

    def test_clear(self):
        """clear() empties the cache."""
        cache = QuadratureCache()
        cache.get(12)
        cache.clear()
        assert len(cache) == 0

    def test_generator_point_count_checked(self):
        """A generator returning the wrong size is rejected."""
        cache = QuadratureCache(generator=lambda kind, npts: quadrature(kind, npts + 1))
        with pytest.raises(ValueError, match="expected 5"):
            cache.get(5)

    def test_single_computation_under_concurrency(self):
        """Concurrent first requests for one point count generate it once."""
        calls = []

        def slow_generator(kind, npts):
            calls.append(npts)
            time.sleep(0.05)
            return quadrature(kind, npts)

        cache = QuadratureCache(generator=slow_generator)
        start = threading.Barrier(8)
        results = []

        def worker():
            start.wait()
            results.append(cache.get(64))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert calls == [64]
        assert len(results) == 8
        assert all(r is results[0] for r in results)
