"""Tests for the layered range map"""

import geopandas as gpd
import matplotlib
import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.collections import LineCollection, QuadMesh
from shapely.geometry import box

from invasive_range.rendering import render_range_map


def _points():
    return pd.DataFrame({
        'lon': [0.5, 1.5, 0.5, 1.5],
        'lat': [0.5, 0.5, 1.5, 1.5],
        'value': [3.0, 8.0, 12.0, 20.0],
    })


def _contiguous_range():
    return gpd.GeoDataFrame(
        {'year': [2017], 'area': [1.0]},
        geometry=[box(0.5, 0.5, 1.5, 1.5)],
        crs="EPSG:3857"
    )


def test_value_grid_drawn_below_range_outline(tmp_path):
    output_path = tmp_path / 'map.png'

    fig = render_range_map(_points(), _contiguous_range(), output_path=output_path, title="Range")

    ax = fig.axes[0]
    grid, outline = ax.collections[0], ax.collections[-1]
    assert isinstance(grid, QuadMesh)
    assert isinstance(outline, LineCollection)
    assert grid.get_zorder() < outline.get_zorder()
    assert output_path.exists()
    assert output_path.stat().st_size > 0
    plt.close(fig)


def test_outline_is_unfilled():
    fig = render_range_map(_points(), _contiguous_range())

    ax = fig.axes[0]
    assert not any(type(c).__name__ == 'PatchCollection' for c in ax.collections)
    plt.close(fig)


def test_renders_outline_without_points():
    empty = pd.DataFrame({'lon': [], 'lat': [], 'value': []})

    fig = render_range_map(empty, _contiguous_range())

    ax = fig.axes[0]
    assert len(ax.collections) == 1
    assert isinstance(ax.collections[0], LineCollection)
    plt.close(fig)


def test_importing_renderer_leaves_backend_alone(monkeypatch):
    import importlib

    import invasive_range.rendering as rendering

    calls = []
    monkeypatch.setattr(matplotlib, 'use', lambda *args, **kwargs: calls.append(args))

    importlib.reload(rendering)

    assert calls == []
