#!/usr/bin/env python3
"""
Detection Record Loading

Reads point observations (observation date + lon/lat) from a delimited file,
parses the day-month-year dates, derives the detection year and projects the
points into the working CRS.
"""

from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from pyproj import CRS
from pyproj.exceptions import CRSError

from invasive_range.config import (
    DATE_COLUMN, DATE_FORMATS, DETECTION_CRS, GEOGRAPHIC_BOUNDS,
    LAT_COLUMN, LON_COLUMN, TARGET_CRS,
)
from invasive_range.errors import CoordinateReferenceError, DataLoadError


def parse_detection_dates(raw_dates, date_formats=DATE_FORMATS):
    """
    Parse day-month-year date text strictly

    Each value is tried against date_formats in order; a value matching none
    of them is an error rather than a silently swapped day and month.
    """
    text = raw_dates.astype(str).str.strip()
    parsed = pd.Series(pd.NaT, index=text.index, dtype='datetime64[ns]')

    for date_format in date_formats:
        remaining = parsed.isna()
        if not remaining.any():
            break
        parsed[remaining] = pd.to_datetime(text[remaining], format=date_format, errors='coerce')

    unparsed = parsed.isna()
    if unparsed.any():
        examples = ", ".join(repr(v) for v in raw_dates[unparsed].head(5))
        raise DataLoadError(
            f"{int(unparsed.sum())} detection date(s) are not valid day-month-year dates: {examples}"
        )

    return parsed


def _parse_coordinates(df, column):
    try:
        return pd.to_numeric(df[column], errors='raise').astype(float)
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Non-numeric values in coordinate column '{column}': {e}") from e


def check_projection_domain(points, src_crs, dst_crs):
    """
    Raise when points fall outside the area where dst_crs is defined

    Geographic inputs must lie in the lon/lat domain; projected inputs are
    brought to lon/lat first. Both are then checked against the target's area
    of use (+/-85.06 degrees latitude for Web Mercator).
    """
    if points.empty:
        return

    if src_crs.is_geographic:
        lon, lat = points.geometry.x, points.geometry.y
        min_lon, min_lat, max_lon, max_lat = GEOGRAPHIC_BOUNDS
        out_of_domain = ~lon.between(min_lon, max_lon) | ~lat.between(min_lat, max_lat)
        if out_of_domain.any():
            bad = list(zip(lon[out_of_domain], lat[out_of_domain]))[:5]
            raise CoordinateReferenceError(
                f"{int(out_of_domain.sum())} detection(s) outside the valid range of {src_crs.to_string()}: {bad}"
            )
    else:
        geographic = points.geometry.to_crs(DETECTION_CRS)
        lon, lat = geographic.x, geographic.y

    area = dst_crs.area_of_use
    if area is None:
        return

    if area.west <= area.east:
        lon_inside = lon.between(area.west, area.east)
    else:
        # Area of use crosses the antimeridian
        lon_inside = (lon >= area.west) | (lon <= area.east)
    outside = ~lon_inside | ~lat.between(area.south, area.north)
    if outside.any():
        bad = list(zip(lon[outside], lat[outside]))[:5]
        raise CoordinateReferenceError(
            f"{int(outside.sum())} detection(s) outside the area of use of {dst_crs.to_string()} "
            f"(lat {area.south:.2f} to {area.north:.2f}): {bad}"
        )


def load_detections(csv_path, source_crs=DETECTION_CRS, target_crs=TARGET_CRS,
                    date_column=DATE_COLUMN, lon_column=LON_COLUMN, lat_column=LAT_COLUMN,
                    date_formats=DATE_FORMATS, sep=','):
    """
    Load detection records as projected points

    Args:
        csv_path: Delimited file with date, longitude and latitude columns
        source_crs: CRS of the coordinate columns, geographic or projected (default: EPSG:4326)
        target_crs: Working CRS (default: EPSG:3857)
        sep: Field delimiter

    Returns:
        GeoDataFrame with observed_date, year and point geometry in target_crs
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise DataLoadError(f"Detection file not found: {csv_path}")

    print(f"🐛 Loading detections: {csv_path.name}")

    try:
        df = pd.read_csv(csv_path, sep=sep)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Could not read detection file {csv_path}: {e}") from e

    missing_cols = [col for col in (date_column, lon_column, lat_column) if col not in df.columns]
    if missing_cols:
        raise DataLoadError(f"Detection file missing required columns: {missing_cols}")

    observed = parse_detection_dates(df[date_column], date_formats)
    lon = _parse_coordinates(df, lon_column)
    lat = _parse_coordinates(df, lat_column)

    missing = lon.isna() | lat.isna()
    if missing.any():
        raise DataLoadError(f"{int(missing.sum())} detection(s) have missing coordinates")

    try:
        src_crs = CRS.from_user_input(source_crs)
        dst_crs = CRS.from_user_input(target_crs)
    except CRSError as e:
        raise CoordinateReferenceError(f"Invalid coordinate reference system: {e}") from e

    detections = gpd.GeoDataFrame(
        {
            'observed_date': observed.values,
            'year': observed.dt.year.astype(int).values,
        },
        geometry=gpd.points_from_xy(lon, lat),
        crs=src_crs
    )

    check_projection_domain(detections, src_crs, dst_crs)

    detections = detections.to_crs(dst_crs)

    coords_finite = np.isfinite(detections.geometry.x) & np.isfinite(detections.geometry.y)
    if not coords_finite.all():
        raise CoordinateReferenceError(
            f"{int((~coords_finite).sum())} detection(s) cannot be transformed to {target_crs}"
        )

    if detections.empty:
        print("  ⚠️  Detection file contains no records")
    else:
        print(f"  ✅ Loaded {len(detections):,} detections "
              f"({detections['year'].min()}-{detections['year'].max()})")

    return detections
