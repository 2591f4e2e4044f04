#!/usr/bin/env python3
"""
Range Geometry Utilities

Shared functions for turning resolved boundaries into a range polygon,
filling its holes and selecting the contiguous range.
"""

from pathlib import Path

import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPolygon, Polygon
from shapely.ops import unary_union
from tqdm import tqdm

from invasive_range.config import BUFFER_DISTANCE_M, SHAPEFILE_SIDECARS, YEAR_CUTOFF
from invasive_range.errors import EmptyGeometryError


def build_range_polygon(resolved, year=YEAR_CUTOFF, buffer_distance=BUFFER_DISTANCE_M):
    """
    Union the boundaries infested by a cutoff year into one range polygon

    Each boundary is buffered before the union so that boundaries separated
    by a gap narrower than twice buffer_distance merge into one part.

    Args:
        resolved: GeoDataFrame from resolve_infested_boundaries
        year: Inclusive cutoff on first_year
        buffer_distance: Outward buffer in CRS units (metres under EPSG:3857)

    Returns:
        One-row GeoDataFrame with year and geometry; the geometry is empty
        when no boundary qualifies
    """
    selected = resolved[resolved['first_year'] <= year]

    if selected.empty:
        geom = Polygon()
    else:
        geom = unary_union(selected.geometry.buffer(buffer_distance).tolist())

    return gpd.GeoDataFrame({'year': [year]}, geometry=[geom], crs=resolved.crs)


def build_range_series(resolved, years, buffer_distance=BUFFER_DISTANCE_M):
    """Build one range polygon per cutoff year"""
    frames = [
        build_range_polygon(resolved, year, buffer_distance)
        for year in tqdm(sorted(years), desc="Building ranges", unit="year")
    ]
    if not frames:
        return gpd.GeoDataFrame({'year': []}, geometry=[], crs=resolved.crs)

    series = gpd.GeoDataFrame(
        pd.concat(frames, ignore_index=True), geometry='geometry', crs=resolved.crs
    )
    return series


def polygon_parts(geom):
    """Decompose a geometry into its single polygons"""
    if geom is None or geom.is_empty:
        return []
    if geom.geom_type == 'Polygon':
        return [geom]
    if hasattr(geom, 'geoms'):
        parts = []
        for g in geom.geoms:
            parts.extend(polygon_parts(g))
        return parts
    return []


def remove_holes(geom):
    """
    Drop every interior ring, keeping the exterior ring(s) only

    Islands nested inside a hole become redundant once the hole is filled:
    they are separate parts of the union and are covered by the filled part.
    """
    if geom is None or geom.is_empty:
        return geom

    if geom.geom_type == 'Polygon':
        return Polygon(geom.exterior)

    filled = [Polygon(poly.exterior) for poly in polygon_parts(geom)]
    return MultiPolygon(filled) if filled else geom


def select_contiguous_range(range_polygon):
    """
    Select the largest hole-free part of a range polygon

    Args:
        range_polygon: GeoDataFrame from build_range_polygon

    Returns:
        One-row GeoDataFrame with year, area (CRS units squared) and a single
        Polygon without interior rings. Parts of exactly equal area resolve
        to the first in decomposition order.
    """
    parts = []
    for geom in range_polygon.geometry:
        parts.extend(polygon_parts(geom))

    if not parts:
        raise EmptyGeometryError("Range polygon has no parts to select from")

    filled = [remove_holes(part) for part in tqdm(parts, desc="Filling holes", unit="part", disable=len(parts) < 50)]
    areas = [part.area for part in filled]

    # max() keeps the first maximum
    largest = max(range(len(filled)), key=lambda i: areas[i])

    year = range_polygon['year'].iloc[0] if 'year' in range_polygon.columns else None

    print(f"  🧩 {len(parts)} part(s); contiguous range covers "
          f"{areas[largest] / 1e6:,.1f} km² of {sum(areas) / 1e6:,.1f} km²")

    return gpd.GeoDataFrame(
        {'year': [year], 'area': [areas[largest]]},
        geometry=[filled[largest]],
        crs=range_polygon.crs
    )


def write_shapefile(gdf, output_path):
    """Write a GeoDataFrame as an ESRI shapefile, replacing any existing one"""
    output_path = Path(output_path).with_suffix('.shp')
    output_path.parent.mkdir(parents=True, exist_ok=True)

    for suffix in SHAPEFILE_SIDECARS:
        existing = output_path.with_suffix(suffix)
        if existing.exists():
            existing.unlink()

    gdf.to_file(output_path, driver='ESRI Shapefile')
    print(f"  💾 Saved {output_path}")
    return output_path
