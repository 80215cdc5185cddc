"""Tests for the integrator and the render entry points.

Tests cover:
- Background-only renders and image orientation
- Depth limits (max_depth=0 is black)
- Mirror reflection of a solid background
- Reproducibility for a fixed seed
- Noise decreasing with the sample count
- Parameter validation before any work is done
"""

import numpy as np
import pytest


def _camera(**kwargs):
    from glint.camera import Camera

    return Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), **kwargs)


class TestBackgroundRender:
    """Renders of scenes without primitives."""

    def test_empty_scene_is_background(self):
        """Test every pixel of an empty scene is the gamma-corrected background."""
        from glint.core.integrator import render
        from glint.scene import Background, Scene

        scene = Scene(camera=_camera(), background=Background.solid((0.25, 0.5625, 1.0)))
        image = render(scene, 8, 6, samples_per_pixel=4, max_depth=5, seed=1)

        assert image.width == 8
        assert image.height == 6
        expected = np.broadcast_to(np.array([0.5, 0.75, 1.0], dtype=np.float32), (6, 8, 3))
        assert np.array_equal(image.pixels, expected)

    def test_top_row_is_sky(self):
        """Test row 0 of the image is the top of the view."""
        from glint.core.integrator import render
        from glint.scene import Scene

        scene = Scene(camera=_camera(vfov=90.0))
        image = render(scene, 4, 8, samples_per_pixel=4, max_depth=2)

        top = image.pixel(0, 0)
        bottom = image.pixel(0, image.height - 1)
        # The default sky is whiter toward the horizon and bluer at the zenith
        assert top[0] < bottom[0]
        assert top[2] == pytest.approx(1.0)

    def test_returns_new_buffer(self):
        """Test consecutive renders do not share pixel memory."""
        from glint.core.integrator import render
        from glint.scene import Scene

        scene = Scene(camera=_camera())
        first = render(scene, 4, 4, samples_per_pixel=1, max_depth=1)
        second = render(scene, 4, 4, samples_per_pixel=1, max_depth=1)

        assert first.pixels is not second.pixels
        first.pixels[:] = 0.0
        assert second.pixels.max() > 0.0


class TestDepthAndMaterials:
    """Renders exercising bounces."""

    def test_zero_depth_is_black(self):
        """Test max_depth=0 renders every pixel black."""
        from glint.core.integrator import render
        from glint.scene import create_default_scene

        image = render(create_default_scene(), 8, 6, samples_per_pixel=2, max_depth=0)
        assert np.all(image.pixels == 0.0)

    def test_mirror_reflects_background(self):
        """Test a sphere filling the view with a perfect mirror shows the tinted sky."""
        from glint.core.integrator import render
        from glint.materials import Metal
        from glint.scene import Background, Scene

        scene = Scene(camera=_camera(vfov=10.0), background=Background.solid((1.0, 1.0, 1.0)))
        scene.add_sphere((0.0, 0.0, -3.0), 1.0, Metal(albedo=(0.25, 0.25, 0.25), fuzz=0.0))

        image = render(scene, 6, 6, samples_per_pixel=2, max_depth=2)
        assert np.allclose(image.pixels, 0.5, atol=1e-6)

    def test_depth_exhausted_on_surface_is_black(self):
        """Test a path that is still bouncing at the depth limit contributes nothing."""
        from glint.core.integrator import render
        from glint.materials import Metal
        from glint.scene import Background, Scene

        scene = Scene(camera=_camera(vfov=10.0), background=Background.solid((1.0, 1.0, 1.0)))
        scene.add_sphere((0.0, 0.0, -3.0), 1.0, Metal(albedo=(0.25, 0.25, 0.25), fuzz=0.0))

        image = render(scene, 6, 6, samples_per_pixel=2, max_depth=1)
        assert np.all(image.pixels == 0.0)

    def test_diffuse_sphere_darker_than_sky(self):
        """Test a diffuse sphere absorbs part of the light."""
        from glint.core.integrator import render
        from glint.materials import Lambertian
        from glint.scene import Background, Scene

        scene = Scene(camera=_camera(vfov=10.0), background=Background.solid((1.0, 1.0, 1.0)))
        scene.add_sphere((0.0, 0.0, -3.0), 1.0, Lambertian(albedo=(0.5, 0.5, 0.5)))

        image = render(scene, 4, 4, samples_per_pixel=16, max_depth=8)
        assert np.all(image.pixels > 0.0)
        assert np.all(image.pixels < 1.0)

    def test_pixels_in_unit_range(self):
        """Test the resolved image is clamped to [0, 1] and free of NaN."""
        from glint.core.integrator import render
        from glint.scene import create_default_scene

        image = render(create_default_scene(), 16, 9, samples_per_pixel=4, max_depth=6)
        assert np.all(np.isfinite(image.pixels))
        assert image.pixels.min() >= 0.0
        assert image.pixels.max() <= 1.0


class TestReproducibility:
    """Seeded sampling."""

    def test_same_seed_bit_identical(self):
        """Test two renders with the same seed are identical."""
        from glint.core.integrator import render
        from glint.scene import create_default_scene

        scene = create_default_scene()
        a = render(scene, 16, 9, samples_per_pixel=4, max_depth=6, seed=42)
        b = render(scene, 16, 9, samples_per_pixel=4, max_depth=6, seed=42)
        assert a == b

    def test_different_seed_differs(self):
        """Test changing the seed changes the noise."""
        from glint.core.integrator import render
        from glint.scene import create_default_scene

        scene = create_default_scene()
        a = render(scene, 16, 9, samples_per_pixel=2, max_depth=6, seed=1)
        b = render(scene, 16, 9, samples_per_pixel=2, max_depth=6, seed=2)
        assert a != b

    def test_noise_decreases_with_samples(self):
        """Test seed-to-seed differences shrink steadily as samples increase."""
        from glint.core.integrator import render
        from glint.materials import Lambertian
        from glint.scene import Scene

        # A diffuse sphere on the view axis filling the frame, under the sky gradient
        scene = Scene(camera=_camera(vfov=10.0))
        scene.add_sphere((0.0, 0.0, -3.0), 1.0, Lambertian(albedo=(0.5, 0.5, 0.5)))

        def seed_spread(spp):
            a = render(scene, 16, 16, samples_per_pixel=spp, max_depth=4, seed=3)
            b = render(scene, 16, 16, samples_per_pixel=spp, max_depth=4, seed=4)
            return float(np.abs(a.pixels - b.pixels).mean())

        spreads = [seed_spread(spp) for spp in (1, 4, 16, 64)]
        assert spreads[0] > 0.0
        assert all(later < earlier for earlier, later in zip(spreads, spreads[1:]))

    def test_render_with_settings(self):
        """Test the settings wrapper forwards every parameter."""
        from glint.config import RenderSettings
        from glint.core.integrator import render, render_with_settings
        from glint.scene import create_default_scene

        scene = create_default_scene()
        settings = RenderSettings(width=8, height=6, samples_per_pixel=2, max_depth=4, seed=9)
        direct = render(scene, 8, 6, samples_per_pixel=2, max_depth=4, seed=9)
        assert render_with_settings(scene, settings) == direct


class TestRenderValidation:
    """Invalid parameters are rejected up front."""

    @pytest.mark.parametrize(
        ("width", "height", "spp", "depth", "seed"),
        [
            (0, 10, 1, 1, 0),
            (10, -1, 1, 1, 0),
            (4096, 10, 1, 1, 0),
            (10, 10, 0, 1, 0),
            (10, 10, 1, -1, 0),
            (10, 10, 1, 1, -1),
            (10, 10, 1, 1, 2**31),
        ],
    )
    def test_invalid_parameters(self, width, height, spp, depth, seed):
        """Test each out-of-range parameter raises ConfigurationError."""
        from glint.core.integrator import render
        from glint.errors import ConfigurationError
        from glint.scene import Scene

        scene = Scene(camera=_camera())
        with pytest.raises(ConfigurationError):
            render(scene, width, height, spp, depth, seed=seed)

    def test_missing_camera(self):
        """Test a scene without a camera cannot be rendered."""
        from glint.core.integrator import render
        from glint.errors import ConfigurationError
        from glint.scene import Scene

        with pytest.raises(ConfigurationError, match="no camera"):
            render(Scene(), 4, 4, 1, 1)

    def test_scene_not_frozen_after_render(self):
        """Test the scene can be edited once a render returns."""
        from glint.core.integrator import render
        from glint.materials import Lambertian
        from glint.scene import Scene

        scene = Scene(camera=_camera())
        render(scene, 4, 4, 1, 1)
        assert not scene.is_frozen
        scene.add_sphere((0, 0, -2), 0.5, Lambertian(albedo=(0.5, 0.5, 0.5)))
