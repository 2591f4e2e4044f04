#!/usr/bin/env python3
"""
Invasive Species Range Map

Maps the contiguous range of an invasive species over a host-species
importance-value raster:

1. Load the importance raster, null zero cells, reproject to Web Mercator
2. Convert the raster to value points
3. Load detection records and project them
4. Load county (atlas) and census division (shapefile) boundaries
5. Resolve the earliest detection per infested boundary
6. Buffer and union the boundaries infested by the cutoff year
7. Fill holes and keep the largest part as the contiguous range
8. Render the value grid with the range outline on top

Usage:
  python -m invasive_range.create_invasive_range_map --raster data/raw/ash_iv.asc \\
      --raster-crs "+proj=longlat +datum=WGS84" --detections data/raw/detections.csv \\
      --secondary-boundaries data/raw/census_divisions.shp
  python -m invasive_range.create_invasive_range_map ... --year 2012 --years 2005 2010 2015
  python -m invasive_range.create_invasive_range_map ... --buffer 10000 --output-dir outputs/eab
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt

from invasive_range.boundaries import load_boundaries
from invasive_range.config import (
    BUFFER_DISTANCE_M, DEFAULT_ATLAS_REGION, INFESTED_BOUNDARIES_FILE,
    OUTPUT_DIR, SECONDARY_ID_FIELD, SIMPLIFY_TOLERANCE_M, TARGET_CRS, YEAR_CUTOFF,
)
from invasive_range.detections import load_detections
from invasive_range.errors import RangeMappingError
from invasive_range.infestation import resolve_infested_boundaries, write_infested_boundaries
from invasive_range.range_geometry_utils import (
    build_range_polygon, build_range_series, polygon_parts,
    select_contiguous_range, write_shapefile,
)
from invasive_range.raster_points import load_value_raster, raster_to_points
from invasive_range.rendering import render_range_map


def summarize_range_series(range_series):
    """Per-year part count and area for a series of range polygons"""
    summary = []
    for _, row in range_series.iterrows():
        parts = polygon_parts(row.geometry)
        summary.append({
            'year': int(row['year']),
            'parts': len(parts),
            'area_km2': round(row.geometry.area / 1e6, 1) if parts else 0.0,
        })
    return summary


def run_pipeline(raster_path, detections_path, secondary_path=None, raster_crs=None,
                 year=YEAR_CUTOFF, buffer_distance=BUFFER_DISTANCE_M,
                 simplify_tolerance=SIMPLIFY_TOLERANCE_M, atlas_region=DEFAULT_ATLAS_REGION,
                 atlas_source=None, secondary_id_field=SECONDARY_ID_FIELD,
                 target_crs=TARGET_CRS, output_dir=OUTPUT_DIR, summary_years=None):
    """
    Run every stage in order and write the outputs

    Returns:
        Dict of output paths (infested_boundaries, contiguous_range, map, summary)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=== Invasive Species Range Mapping ===")
    print(f"Cutoff year: {year}  |  Buffer: {buffer_distance:,} m  |  CRS: {target_crs}\n")

    value_raster = load_value_raster(raster_path, source_crs=raster_crs, target_crs=target_crs)
    points = raster_to_points(value_raster)

    detections = load_detections(detections_path, target_crs=target_crs)

    boundaries = load_boundaries(
        secondary_path=secondary_path,
        secondary_id_field=secondary_id_field,
        region=atlas_region,
        atlas_source=atlas_source,
        target_crs=target_crs
    )

    resolved = resolve_infested_boundaries(boundaries, detections, simplify_tolerance)

    print(f"\n🧭 Building range through {year}...")
    range_polygon = build_range_polygon(resolved, year, buffer_distance)
    contiguous_range = select_contiguous_range(range_polygon)

    # Nothing is written until every stage has succeeded
    infested_path = write_infested_boundaries(resolved, output_dir / INFESTED_BOUNDARIES_FILE)
    range_path = write_shapefile(contiguous_range, output_dir / f"contiguous_range_{year}.shp")

    fig = render_range_map(
        points,
        contiguous_range,
        output_path=output_dir / f"invasive_range_{year}.png",
        title=f"Contiguous invasive range through {year}"
    )
    plt.close(fig)

    years = sorted(set(summary_years or []) | {year})
    range_series = build_range_series(resolved, years, buffer_distance)

    summary = {
        'created_date': datetime.now().isoformat(),
        'inputs': {
            'raster': str(raster_path),
            'detections': str(detections_path),
            'secondary_boundaries': str(secondary_path) if secondary_path else None,
            'atlas_region': atlas_region,
        },
        'parameters': {
            'year': year,
            'buffer_distance_m': buffer_distance,
            'simplify_tolerance_m': simplify_tolerance,
            'crs': str(target_crs),
        },
        'counts': {
            'value_points': len(points),
            'detections': len(detections),
            'boundaries': len(boundaries),
            'infested_boundaries': int(resolved['ID'].nunique()),
        },
        'contiguous_range_km2': round(float(contiguous_range['area'].iloc[0]) / 1e6, 1),
        'range_by_year': summarize_range_series(range_series),
    }

    summary_path = output_dir / 'range_summary.json'
    with open(summary_path, 'w') as f:
        json.dump(summary, f, indent=2)

    print(f"\n🎉 Range mapping complete!")
    print(f"   📄 Infested boundaries: {infested_path.name}")
    print(f"   🗺️  Contiguous range: {range_path.name} ({summary['contiguous_range_km2']:,} km²)")
    print(f"   🖼️  Map: invasive_range_{year}.png")
    print(f"   📊 Summary: {summary_path.name}")

    return {
        'infested_boundaries': infested_path,
        'contiguous_range': range_path,
        'map': output_dir / f"invasive_range_{year}.png",
        'summary': summary_path,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description='Map the contiguous range of an invasive species')
    parser.add_argument('--raster', required=True,
                       help='Importance value raster')
    parser.add_argument('--raster-crs',
                       help='Projection of the raster (EPSG code, proj4 or WKT); defaults to the file CRS')
    parser.add_argument('--detections', required=True,
                       help='Detection CSV with observedDate, lon, lat columns')
    parser.add_argument('--secondary-boundaries',
                       help='Additional boundary shapefile (e.g. census divisions)')
    parser.add_argument('--secondary-id-field', default=SECONDARY_ID_FIELD,
                       help=f'Identifier field of the secondary shapefile (default: {SECONDARY_ID_FIELD})')
    parser.add_argument('--atlas-region', default=DEFAULT_ATLAS_REGION,
                       help=f'Built-in atlas region (default: {DEFAULT_ATLAS_REGION})')
    parser.add_argument('--atlas-source',
                       help='Local copy of the atlas region file')
    parser.add_argument('--year', type=int, default=YEAR_CUTOFF,
                       help=f'Inclusive first-detection year cutoff (default: {YEAR_CUTOFF})')
    parser.add_argument('--years', type=int, nargs='*', default=None,
                       help='Additional cutoff years to summarize range spread')
    parser.add_argument('--buffer', type=float, default=BUFFER_DISTANCE_M,
                       help=f'Boundary buffer distance in meters (default: {BUFFER_DISTANCE_M})')
    parser.add_argument('--simplify', type=float, default=SIMPLIFY_TOLERANCE_M,
                       help=f'Boundary simplification tolerance in meters (default: {SIMPLIFY_TOLERANCE_M})')
    parser.add_argument('--output-dir', default=str(OUTPUT_DIR),
                       help=f'Output directory (default: {OUTPUT_DIR})')

    args = parser.parse_args(argv)

    # Batch run: render off-screen
    matplotlib.use('Agg')

    try:
        run_pipeline(
            raster_path=args.raster,
            detections_path=args.detections,
            secondary_path=args.secondary_boundaries,
            raster_crs=args.raster_crs,
            year=args.year,
            buffer_distance=args.buffer,
            simplify_tolerance=args.simplify,
            atlas_region=args.atlas_region,
            atlas_source=args.atlas_source,
            secondary_id_field=args.secondary_id_field,
            output_dir=args.output_dir,
            summary_years=args.years
        )
    except RangeMappingError as e:
        print(f"❌ {type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
