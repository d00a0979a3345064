"""Unit tests for the pixel grid.

Tests cover:
- Grid setup and dimension validation
- Screen coordinate assignment
- Incremental mean folding
- Final 8-bit resolution and the background fallback
"""

import numpy as np
import pytest


class TestPixelGridSetup:
    """Tests for setup_pixel_grid."""

    def test_dimensions(self):
        """Test the active dimensions are recorded."""
        from spheretrace.core.pixel import get_grid_dimensions, setup_pixel_grid

        setup_pixel_grid(8, 6)
        assert get_grid_dimensions() == (8, 6)

    @pytest.mark.parametrize("width,height", [(1280, 720), (1920, 1080), (2048, 2048)])
    def test_common_resolutions(self, width, height):
        """Test HD resolutions up to the preallocated maximum are accepted."""
        from spheretrace.core.pixel import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, get_grid_dimensions, setup_pixel_grid

        assert (MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT) == (2048, 2048)
        setup_pixel_grid(width, height)
        assert get_grid_dimensions() == (width, height)

    @pytest.mark.parametrize("width,height", [(0, 4), (4, 0), (-1, 4), (2049, 4), (4, 2049), (4096, 4)])
    def test_invalid_dimensions(self, width, height):
        """Test out-of-range dimensions are rejected."""
        from spheretrace.core.pixel import setup_pixel_grid

        with pytest.raises(ValueError):
            setup_pixel_grid(width, height)

    def test_screen_coordinates(self):
        """Test each pixel gets ((col - w/2)/w, (row - h/2)/h)."""
        from spheretrace.core.pixel import get_screen_coordinates_numpy, setup_pixel_grid

        setup_pixel_grid(4, 3)
        coords = get_screen_coordinates_numpy()
        assert coords.shape == (3, 4, 2)
        assert np.allclose(coords[0, 0], (-0.5, -0.5))
        assert np.allclose(coords[0, 3], (0.25, -0.5))
        assert np.allclose(coords[2, 1], (-0.25, 0.5 / 3.0))
        # Center pixel of an even width maps to x = 0
        assert np.allclose(coords[1, 2, 0], 0.0)

    def test_setup_clears_colors(self):
        """Test setting up the grid discards accumulated samples."""
        from spheretrace.core.pixel import fold_pixel, get_pixel_counts_numpy, setup_pixel_grid

        setup_pixel_grid(2, 2)
        fold_pixel(0, 0, (100, 100, 100))
        setup_pixel_grid(2, 2)
        assert np.all(get_pixel_counts_numpy() == 0)


class TestPixelFolding:
    """Tests for the incremental mean."""

    def test_fold_mean(self):
        """Test folding 10, 20, 30 yields a mean of 20."""
        from spheretrace.core.pixel import fold_pixel, setup_pixel_grid

        setup_pixel_grid(2, 2)
        assert fold_pixel(1, 0, (10, 0, 255)) == pytest.approx((10.0, 0.0, 255.0))
        assert fold_pixel(1, 0, (20, 0, 255)) == pytest.approx((15.0, 0.0, 255.0))
        mean = fold_pixel(1, 0, (30, 0, 255))
        assert mean == pytest.approx((20.0, 0.0, 255.0))

    def test_fold_only_touches_one_pixel(self):
        """Test folding leaves other pixels untouched."""
        from spheretrace.core.pixel import fold_pixel, get_pixel_counts_numpy, setup_pixel_grid

        setup_pixel_grid(3, 2)
        fold_pixel(1, 2, (50, 50, 50))
        counts = get_pixel_counts_numpy()
        assert counts[1, 2] == 1
        assert counts.sum() == 1

    def test_fold_out_of_range(self):
        """Test folding outside the grid raises IndexError."""
        from spheretrace.core.pixel import fold_pixel, setup_pixel_grid

        setup_pixel_grid(2, 2)
        with pytest.raises(IndexError):
            fold_pixel(2, 0, (0, 0, 0))
        with pytest.raises(IndexError):
            fold_pixel(0, -1, (0, 0, 0))

    def test_clear_pixel_colors(self):
        """Test clearing resets means and counts."""
        from spheretrace.core.pixel import (
            clear_pixel_colors,
            fold_pixel,
            get_pixel_counts_numpy,
            get_pixel_means_numpy,
            setup_pixel_grid,
        )

        setup_pixel_grid(2, 2)
        fold_pixel(0, 1, (200, 100, 50))
        clear_pixel_colors()
        assert np.all(get_pixel_counts_numpy() == 0)
        assert np.all(get_pixel_means_numpy() == 0.0)


class TestResolvePixels:
    """Tests for resolve_pixels_u8."""

    def test_unsampled_pixels_take_background(self):
        """Test pixels without samples resolve to the background."""
        from spheretrace.core.pixel import fold_pixel, resolve_pixels_u8, setup_pixel_grid

        setup_pixel_grid(2, 1)
        fold_pixel(0, 0, (10, 20, 30))
        image = resolve_pixels_u8((1, 2, 3))
        assert image.shape == (1, 2, 3)
        assert image.dtype == np.uint8
        assert tuple(image[0, 0]) == (10, 20, 30)
        assert tuple(image[0, 1]) == (1, 2, 3)

    def test_means_are_rounded(self):
        """Test fractional means round to the nearest level."""
        from spheretrace.core.pixel import fold_pixel, resolve_pixels_u8, setup_pixel_grid

        setup_pixel_grid(1, 1)
        fold_pixel(0, 0, (10, 0, 255))
        fold_pixel(0, 0, (13, 1, 254))
        image = resolve_pixels_u8((0, 0, 0))
        # Means are 11.5, 0.5 and 254.5; numpy rounds halves to even
        assert tuple(image[0, 0]) == (12, 0, 254)


class TestGridNotInitialized:
    """Tests for the initialization guard."""

    def test_check_grid_initialized(self):
        """Test the guard raises before setup and passes after."""
        from spheretrace.core import pixel

        pixel._grid_initialized[None] = 0
        with pytest.raises(RuntimeError):
            pixel.check_grid_initialized()
        pixel.setup_pixel_grid(1, 1)
        pixel.check_grid_initialized()
