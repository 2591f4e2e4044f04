#!/usr/bin/env python3
"""
Administrative Boundary Loading

Builds one boundary collection from two heterogeneous sources: a region of
the built-in polygon atlas (US counties by default) and an external polygon
shapefile (e.g. Canadian census divisions). Both are converted to the same
ID + geometry schema in the working CRS before they are concatenated.
"""

from pathlib import Path

import geopandas as gpd
import pandas as pd
from pyogrio.errors import DataSourceError
from shapely.validation import make_valid

from invasive_range.config import (
    ATLAS_SOURCES, COMMON_ID_FIELD, DEFAULT_ATLAS_REGION,
    SECONDARY_ID_FIELD, TARGET_CRS,
)
from invasive_range.errors import DataLoadError, SchemaMismatchError

POLYGON_TYPES = ('Polygon', 'MultiPolygon')


def _read_vector(source):
    """Read a vector file or URL, wrapping driver errors"""
    is_url = str(source).startswith(('http://', 'https://'))
    if not is_url and not Path(source).exists():
        raise DataLoadError(f"Boundary file not found: {source}")

    try:
        return gpd.read_file(source)
    except (DataSourceError, OSError) as e:
        raise DataLoadError(f"Could not read boundary source {source}: {e}") from e


def load_atlas_boundaries(region=DEFAULT_ATLAS_REGION, fill=False, source=None):
    """
    Load a region from the built-in polygon atlas

    Args:
        region: Atlas key (see ATLAS_SOURCES)
        fill: Return filled polygons; without it only the ring linework is returned
        source: Local path overriding the registry location for the region

    Returns:
        (GeoDataFrame, id_field) in the atlas' native CRS
    """
    if region not in ATLAS_SOURCES:
        raise DataLoadError(
            f"Unknown atlas region '{region}'. Available: {', '.join(sorted(ATLAS_SOURCES))}"
        )

    atlas_entry = ATLAS_SOURCES[region]
    path = source if source is not None else atlas_entry['path']

    print(f"🗺️  Loading atlas region '{region}': {atlas_entry['description']}")
    gdf = _read_vector(path)
    print(f"  Loaded {len(gdf):,} features")

    if not fill:
        gdf = gdf.copy()
        gdf['geometry'] = gdf.geometry.boundary

    return gdf, atlas_entry['id_field']


def load_shapefile_boundaries(path):
    """Load an external polygon shapefile"""
    print(f"🗺️  Loading boundary shapefile: {Path(path).name}")
    gdf = _read_vector(path)
    print(f"  Loaded {len(gdf):,} features")
    return gdf


def fix_geometry(geom):
    """Repair an invalid geometry, keeping polygonal parts only"""
    if geom is None or geom.is_empty or geom.is_valid:
        return geom

    fixed_geom = make_valid(geom)

    if fixed_geom.geom_type == 'GeometryCollection':
        polygons = [g for g in fixed_geom.geoms if g.geom_type in POLYGON_TYPES]
        if polygons:
            return max(polygons, key=lambda x: x.area)

    return fixed_geom


def normalize_boundaries(gdf, id_field, target_crs=TARGET_CRS):
    """
    Convert a boundary source to the common ID + geometry schema

    Args:
        gdf: Source GeoDataFrame
        id_field: Name of the source's identifier column
        target_crs: Working CRS

    Returns:
        GeoDataFrame with exactly the columns ID and geometry in target_crs
    """
    if id_field not in gdf.columns:
        raise SchemaMismatchError(
            f"Boundary source has no identifier field '{id_field}' (fields: {list(gdf.columns)})"
        )
    if gdf.crs is None:
        raise DataLoadError("Boundary source has no CRS")

    geometry_name = gdf.geometry.name
    normalized = gdf[[id_field, geometry_name]].copy()
    normalized = normalized.rename(columns={id_field: COMMON_ID_FIELD})
    if geometry_name != 'geometry':
        normalized = normalized.rename_geometry('geometry')
    normalized[COMMON_ID_FIELD] = normalized[COMMON_ID_FIELD].astype(str)

    invalid_count = int((~normalized.geometry.is_valid).sum())
    if invalid_count:
        print(f"  🔧 Repairing {invalid_count} invalid geometries")
        normalized['geometry'] = normalized.geometry.apply(fix_geometry)

    return normalized.to_crs(target_crs)


def combine_boundaries(*sources):
    """
    Concatenate normalized boundary sources into one collection

    The field sets must match exactly, every geometry must be polygonal and
    ids must be unique across all sources.
    """
    if not sources:
        raise SchemaMismatchError("No boundary sources to combine")

    expected_fields = list(sources[0].columns)
    for i, source in enumerate(sources[1:], start=2):
        if list(source.columns) != expected_fields:
            raise SchemaMismatchError(
                f"Boundary source {i} fields {list(source.columns)} do not match {expected_fields}"
            )
        if source.crs != sources[0].crs:
            raise SchemaMismatchError(
                f"Boundary source {i} CRS {source.crs} does not match {sources[0].crs}"
            )

    combined = gpd.GeoDataFrame(
        pd.concat(sources, ignore_index=True),
        geometry='geometry',
        crs=sources[0].crs
    )

    non_polygonal = ~combined.geom_type.isin(POLYGON_TYPES)
    if non_polygonal.any():
        kinds = sorted(combined.geom_type[non_polygonal].dropna().unique())
        raise SchemaMismatchError(
            f"{int(non_polygonal.sum())} boundaries are not polygons ({', '.join(kinds) or 'missing'}); "
            f"load atlas regions with fill=True"
        )

    duplicated = combined[COMMON_ID_FIELD].duplicated(keep=False)
    if duplicated.any():
        dupes = sorted(combined.loc[duplicated, COMMON_ID_FIELD].unique())[:5]
        raise SchemaMismatchError(f"Duplicate boundary ids after normalization: {dupes}")

    print(f"  ✅ Combined {len(sources)} sources into {len(combined):,} boundaries")
    return combined


def load_boundaries(secondary_path=None, secondary_id_field=SECONDARY_ID_FIELD,
                    region=DEFAULT_ATLAS_REGION, atlas_source=None, target_crs=TARGET_CRS):
    """
    Load the atlas region plus an optional secondary shapefile as one collection

    Returns:
        GeoDataFrame with ID and geometry in target_crs
    """
    atlas, atlas_id_field = load_atlas_boundaries(region, fill=True, source=atlas_source)
    sources = [normalize_boundaries(atlas, atlas_id_field, target_crs)]

    if secondary_path is not None:
        secondary = load_shapefile_boundaries(secondary_path)
        sources.append(normalize_boundaries(secondary, secondary_id_field, target_crs))

    return combine_boundaries(*sources)
