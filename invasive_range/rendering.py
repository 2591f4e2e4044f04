#!/usr/bin/env python3
"""
Range Map Rendering

Draws the importance-value grid with the contiguous range outline on top.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from invasive_range.config import (
    FIGURE_DPI, FIGURE_SIZE, RANGE_OUTLINE_COLOR,
    RANGE_OUTLINE_WIDTH, VALUE_COLORMAP,
)

# Grid must stay below the outline or the outline is hidden
VALUE_GRID_ZORDER = 1
RANGE_OUTLINE_ZORDER = 2


def render_range_map(points, contiguous_range, output_path=None, title=None,
                     cmap=VALUE_COLORMAP):
    """
    Render value points and the contiguous range as one layered map

    Args:
        points: DataFrame with lon, lat and value from raster_to_points
        contiguous_range: GeoDataFrame from select_contiguous_range
        output_path: Image path to save to (format from the extension)
        title: Optional map title
        cmap: Matplotlib colormap for the value grid

    Returns:
        The matplotlib Figure
    """
    print("🎨 Rendering range map...")

    fig, ax = plt.subplots(figsize=FIGURE_SIZE)

    if points.empty:
        print("  ⚠️  No value points to draw")
    else:
        grid = points.pivot_table(index='lat', columns='lon', values='value', aggfunc='mean')
        mesh = ax.pcolormesh(
            grid.columns.values,
            grid.index.values,
            np.ma.masked_invalid(grid.values),
            cmap=cmap,
            shading='nearest',
            zorder=VALUE_GRID_ZORDER
        )
        fig.colorbar(mesh, ax=ax, label='Importance value', shrink=0.7)

    contiguous_range.boundary.plot(
        ax=ax,
        color=RANGE_OUTLINE_COLOR,
        linewidth=RANGE_OUTLINE_WIDTH,
        zorder=RANGE_OUTLINE_ZORDER
    )

    ax.set_aspect('equal')
    ax.set_axis_off()
    if title:
        ax.set_title(title)

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=FIGURE_DPI, bbox_inches='tight')
        print(f"  💾 Saved {output_path}")

    return fig
