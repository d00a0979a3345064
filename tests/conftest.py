"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is created
    from spheretrace.materials.phong import clear_phong_materials
    from spheretrace.scene.intersection import clear_scene
    from spheretrace.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_lights()
        clear_phong_materials()

    _clear_all()
    yield
    _clear_all()
