#!/usr/bin/env python3
"""
Importance Value Raster Loading

Loads a species importance-value raster, nulls out zero cells, reprojects it
to the working CRS and flattens it into a table of point samples for mapping.
"""

from pathlib import Path
from typing import NamedTuple

import numpy as np
import pandas as pd
import rasterio
from rasterio.crs import CRS
from rasterio.enums import Resampling
from rasterio.errors import CRSError, RasterioIOError
from rasterio.transform import Affine, xy
from rasterio.warp import calculate_default_transform, reproject

from invasive_range.config import TARGET_CRS
from invasive_range.errors import DataLoadError


class ValueRaster(NamedTuple):
    """Importance-value grid with NaN for nulled cells"""
    data: np.ndarray
    transform: Affine
    crs: CRS


def _parse_crs(crs_definition):
    """Parse a CRS definition (EPSG code, proj4 string or WKT)"""
    try:
        return CRS.from_user_input(crs_definition)
    except CRSError as e:
        raise DataLoadError(f"Malformed projection definition {crs_definition!r}: {e}") from e


def load_value_raster(raster_path, source_crs=None, target_crs=TARGET_CRS):
    """
    Load an importance-value raster and reproject it to the working CRS

    Args:
        raster_path: Path to a single-band raster (GeoTIFF, ASCII grid, ...)
        source_crs: Projection of the raster; overrides the file's own CRS when given
        target_crs: CRS to reproject to (default: EPSG:3857)

    Returns:
        ValueRaster with zero and nodata cells set to NaN
    """
    raster_path = Path(raster_path)
    if not raster_path.exists():
        raise DataLoadError(f"Raster file not found: {raster_path}")

    dst_crs = _parse_crs(target_crs)
    src_crs = _parse_crs(source_crs) if source_crs is not None else None

    print(f"🌲 Loading importance value raster: {raster_path.name}")

    try:
        with rasterio.open(raster_path) as src:
            data = src.read(1).astype(np.float32)
            src_transform = src.transform
            src_nodata = src.nodata
            width, height = src.width, src.height
            bounds = src.bounds
            if src_crs is None:
                src_crs = src.crs
    except RasterioIOError as e:
        raise DataLoadError(f"Could not read raster {raster_path}: {e}") from e

    if src_crs is None:
        raise DataLoadError(f"No projection known for {raster_path.name}; pass source_crs")

    # Null out zero cells (species absent) and the file's own nodata value
    null_mask = data == 0
    if src_nodata is not None and not np.isnan(src_nodata):
        null_mask |= data == src_nodata
    data[null_mask] = np.nan

    print(f"  Source CRS: {src_crs}")
    print(f"  Shape: {data.shape} (height x width)")
    print(f"  Valid cells: {int(np.isfinite(data).sum()):,} of {data.size:,}")

    try:
        dst_transform, dst_width, dst_height = calculate_default_transform(
            src_crs, dst_crs, width, height, *bounds
        )
    except CRSError as e:
        raise DataLoadError(f"Cannot reproject {raster_path.name} to {target_crs}: {e}") from e

    output_data = np.full((dst_height, dst_width), np.nan, dtype=np.float32)

    reproject(
        source=data,
        destination=output_data,
        src_transform=src_transform,
        src_crs=src_crs,
        src_nodata=np.nan,
        dst_transform=dst_transform,
        dst_crs=dst_crs,
        dst_nodata=np.nan,
        resampling=Resampling.nearest
    )

    print(f"  Reprojected to {dst_crs}: {output_data.shape}, "
          f"resolution {abs(dst_transform.a):.1f} x {abs(dst_transform.e):.1f}")

    return ValueRaster(output_data, dst_transform, dst_crs)


def raster_to_points(value_raster):
    """
    Flatten a ValueRaster into one row per valid cell

    Args:
        value_raster: ValueRaster from load_value_raster

    Returns:
        DataFrame with lon, lat (cell centres in the raster CRS) and value
    """
    data = value_raster.data
    rows, cols = np.nonzero(np.isfinite(data) & (data != 0))

    if rows.size == 0:
        print("  ⚠️  Raster contains no valid cells")
        return pd.DataFrame({'lon': pd.Series(dtype=float),
                             'lat': pd.Series(dtype=float),
                             'value': pd.Series(dtype=float)})

    xs, ys = xy(value_raster.transform, rows, cols, offset='center')

    points = pd.DataFrame({
        'lon': np.asarray(xs, dtype=float),
        'lat': np.asarray(ys, dtype=float),
        'value': data[rows, cols].astype(float),
    })

    # Residual nulls should not survive the mask above; drop them regardless
    points = points.dropna(subset=['value'])
    points = points[points['value'] != 0].reset_index(drop=True)

    print(f"  📍 Converted raster to {len(points):,} value points")
    return points
