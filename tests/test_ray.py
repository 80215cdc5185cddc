"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, safe_normalize, reflect, refract)
- Random sampling functions for Monte Carlo
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 2048


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from glint.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes origin + t * direction."""
        from glint.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_make_ray_default_range(self):
        """Test make_ray uses the default (T_MIN, T_MAX) interval."""
        from glint.core.ray import T_MAX, T_MIN, make_ray, vec3

        t_min = ti.field(dtype=ti.f32, shape=())
        t_max = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
            t_min[None] = ray.t_min
            t_max[None] = ray.t_max

        test_kernel()
        assert t_min[None] == pytest.approx(T_MIN)
        assert t_max[None] == pytest.approx(T_MAX, rel=1e-6)


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_length_and_dot(self):
        """Test length, length_squared and dot on a 3-4-0 vector."""
        from glint.core.ray import dot, length, length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[0] = length(v)
            result[1] = length_squared(v)
            result[2] = dot(v, vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert abs(result[0] - 5.0) < 1e-6
        assert abs(result[1] - 25.0) < 1e-5
        assert abs(result[2] - 7.0) < 1e-6

    def test_cross_product(self):
        """Test x cross y gives z."""
        from glint.core.ray import cross, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6

    def test_safe_normalize(self):
        """Test safe_normalize scales to unit length."""
        from glint.core.ray import safe_normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_safe_normalize_zero_vector(self):
        """Test safe_normalize returns zero (not NaN) for the zero vector."""
        from glint.core.ray import safe_normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(0.0, 0.0, 0.0))

        test_kernel()
        r = result[None].to_numpy()
        assert not np.any(np.isnan(r))
        assert np.all(r == 0.0)

    def test_normalize_or_fallback(self):
        """Test normalize_or returns the fallback for a zero vector."""
        from glint.core.ray import normalize_or, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            fallback = vec3(0.0, 1.0, 0.0)
            result[0] = normalize_or(vec3(0.0, 0.0, 0.0), fallback)
            result[1] = normalize_or(vec3(2.0, 0.0, 0.0), fallback)

        test_kernel()
        assert np.allclose(result[0].to_numpy(), [0.0, 1.0, 0.0])
        assert np.allclose(result[1].to_numpy(), [1.0, 0.0, 0.0])

    def test_near_zero(self):
        """Test near_zero detects tiny vectors only."""
        from glint.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0

    def test_reflect(self):
        """Test reflection of a 45 degree ray off a floor."""
        from glint.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [1.0, 1.0, 0.0], atol=1e-6)

    def test_refract_normal_incidence(self):
        """Test a ray hitting a surface head-on passes straight through."""
        from glint.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        assert np.allclose(result[None].to_numpy(), [0.0, -1.0, 0.0], atol=1e-6)

    def test_refract_snell(self):
        """Test the refracted direction satisfies Snell's law."""
        from glint.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        eta = 1.0 / 1.5
        s = float(np.sqrt(0.5))

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(s, -s, 0.0), vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result[None].to_numpy()
        assert abs(np.linalg.norm(r) - 1.0) < 1e-5
        # sin(theta_t) = eta * sin(theta_i)
        assert abs(r[0] - eta * s) < 1e-5
        assert r[1] < 0.0

    def test_refract_total_internal_reflection(self):
        """Test refract returns the zero vector beyond the critical angle."""
        from glint.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = vec3(0.9, -0.1, 0.0).normalized()
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        assert np.all(result[None].to_numpy() == 0.0)

    def test_schlick_reflectance(self):
        """Test Schlick gives r0 at normal incidence and 1 at grazing."""
        from glint.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = schlick_reflectance(1.0, 1.5)
            result[1] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[0] - 0.04) < 1e-6
        assert abs(result[1] - 1.0) < 1e-6


class TestRandomSampling:
    """Tests for the random direction samplers."""

    def test_random_unit_vector_length(self):
        """Test random_unit_vector produces unit vectors."""
        from glint.core.ray import random_unit_vector
        from glint.core.rng import seed_stream

        out = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                v, _ = random_unit_vector(seed_stream(ti.u32(1), ti.cast(i, ti.u32)))
                out[i] = v

        test_kernel()
        lengths = np.linalg.norm(out.to_numpy(), axis=1)
        assert np.allclose(lengths, 1.0, atol=1e-5)
        # Roughly centered on the origin
        assert np.all(np.abs(out.to_numpy().mean(axis=0)) < 0.1)

    def test_random_in_unit_sphere_bounds(self):
        """Test random_in_unit_sphere stays inside the unit ball."""
        from glint.core.ray import random_in_unit_sphere
        from glint.core.rng import seed_stream

        out = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                v, _ = random_in_unit_sphere(seed_stream(ti.u32(2), ti.cast(i, ti.u32)))
                out[i] = v

        test_kernel()
        lengths = np.linalg.norm(out.to_numpy(), axis=1)
        assert np.all(lengths <= 1.0 + 1e-5)

    def test_random_in_unit_disk_bounds(self):
        """Test random_in_unit_disk stays in the z=0 unit disk."""
        from glint.core.ray import random_in_unit_disk
        from glint.core.rng import seed_stream

        out = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                v, _ = random_in_unit_disk(seed_stream(ti.u32(3), ti.cast(i, ti.u32)))
                out[i] = v

        test_kernel()
        points = out.to_numpy()
        assert np.all(points[:, 2] == 0.0)
        assert np.all(np.hypot(points[:, 0], points[:, 1]) <= 1.0 + 1e-5)

    def test_sample_cosine_hemisphere(self):
        """Test cosine sampling stays in the hemisphere with mean cosine 2/3."""
        from glint.core.ray import sample_cosine_hemisphere, vec3
        from glint.core.rng import seed_stream

        out = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        pdfs = ti.field(dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for i in range(N_SAMPLES):
                d, pdf, _ = sample_cosine_hemisphere(
                    normal, seed_stream(ti.u32(4), ti.cast(i, ti.u32))
                )
                out[i] = d
                pdfs[i] = pdf

        test_kernel()
        dirs = out.to_numpy()
        assert np.all(dirs[:, 2] >= -1e-6)
        assert np.allclose(np.linalg.norm(dirs, axis=1), 1.0, atol=1e-5)
        # E[cos theta] under a cosine-weighted distribution is 2/3
        assert abs(dirs[:, 2].mean() - 2.0 / 3.0) < 0.03
        assert np.allclose(pdfs.to_numpy(), dirs[:, 2] / np.pi, atol=1e-5)

    def test_build_onb_orthogonality(self):
        """Test the basis built from a normal is orthonormal."""
        from glint.core.ray import build_onb_from_normal, vec3

        out = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            t, b, n = build_onb_from_normal(vec3(1.0, 0.0, 0.0))
            out[0] = t
            out[1] = b
            out[2] = n

        test_kernel()
        basis = out.to_numpy()
        assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-5)
