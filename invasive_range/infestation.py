#!/usr/bin/env python3
"""
Infestation Resolution

Joins detections to boundaries and reduces each infested boundary to its
earliest detection.
"""

import geopandas as gpd
import pandas as pd

from invasive_range.config import COMMON_ID_FIELD, SHAPEFILE_FIELD_RENAMES, SIMPLIFY_TOLERANCE_M
from invasive_range.range_geometry_utils import write_shapefile

RESOLVED_COLUMNS = [COMMON_ID_FIELD, 'first_date', 'first_year', 'geometry']


def resolve_infested_boundaries(boundaries, detections, simplify_tolerance=SIMPLIFY_TOLERANCE_M):
    """
    Annotate each infested boundary with its earliest detection

    Args:
        boundaries: GeoDataFrame with ID and geometry
        detections: GeoDataFrame with observed_date, year and point geometry
        simplify_tolerance: Vertex reduction tolerance in CRS units (0 disables)

    Returns:
        GeoDataFrame with ID, first_date, first_year and geometry. Detections
        tied on the earliest date collapse to one row per (ID, first_date);
        an empty result means no boundary contains a detection.
    """
    print("🔍 Resolving infested boundaries...")

    if detections.crs != boundaries.crs:
        detections = detections.to_crs(boundaries.crs)

    # Points on a boundary edge are not contained by it
    joined = gpd.sjoin(
        boundaries,
        detections[['observed_date', 'year', 'geometry']],
        how='left',
        predicate='contains'
    )
    joined = joined.dropna(subset=['index_right']).reset_index(drop=True)

    print(f"  {joined[COMMON_ID_FIELD].nunique():,} of {len(boundaries):,} boundaries contain detections")

    if joined.empty:
        print("  ⚠️  No boundary contains a detection")
        return gpd.GeoDataFrame(
            {
                COMMON_ID_FIELD: pd.Series(dtype=str),
                'first_date': pd.Series(dtype='datetime64[ns]'),
                'first_year': pd.Series(dtype=int),
            },
            geometry=gpd.GeoSeries([]),
            crs=boundaries.crs
        )

    earliest = joined.groupby(COMMON_ID_FIELD)['observed_date'].transform('min')
    joined = joined[joined['observed_date'] == earliest]

    # Guard against date/year disagreement surviving from parsing
    joined = joined[joined['year'] == joined['observed_date'].dt.year]

    resolved = joined.rename(columns={'observed_date': 'first_date', 'year': 'first_year'})
    resolved = gpd.GeoDataFrame(
        resolved[RESOLVED_COLUMNS].copy(),
        geometry='geometry',
        crs=boundaries.crs
    )
    resolved['first_year'] = resolved['first_year'].astype(int)

    if simplify_tolerance and not resolved.empty:
        resolved['geometry'] = resolved.geometry.simplify(simplify_tolerance, preserve_topology=True)

    resolved = resolved.drop_duplicates(subset=[COMMON_ID_FIELD, 'first_date']).reset_index(drop=True)

    if resolved.empty:
        print("  ⚠️  No infested boundaries resolved")
    else:
        print(f"  ✅ {len(resolved):,} infested boundaries, "
              f"first detections {resolved['first_year'].min()}-{resolved['first_year'].max()}")

    return resolved


def write_infested_boundaries(resolved, output_path):
    """
    Write resolved boundaries as a shapefile

    Field names are shortened for the 10-character dbf limit and dates are
    stored as ISO text.
    """
    out = resolved.copy()
    out['first_date'] = out['first_date'].dt.strftime('%Y-%m-%d')
    out = out.rename(columns=SHAPEFILE_FIELD_RENAMES)
    return write_shapefile(out, output_path)
