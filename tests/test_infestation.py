"""Tests for resolving the earliest detection per boundary"""

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point, box

from invasive_range.infestation import resolve_infested_boundaries, write_infested_boundaries


def _boundaries():
    return gpd.GeoDataFrame(
        {'ID': ['A', 'B', 'C']},
        geometry=[box(0, 0, 1000, 1000), box(1000, 0, 2000, 1000), box(2000, 0, 3000, 1000)],
        crs="EPSG:3857"
    )


def _detections(records):
    """records: (date string, year, x, y)"""
    dates = pd.to_datetime([r[0] for r in records])
    return gpd.GeoDataFrame(
        {
            'observed_date': dates,
            'year': [r[1] for r in records],
        },
        geometry=[Point(r[2], r[3]) for r in records],
        crs="EPSG:3857"
    )


def test_keeps_earliest_detection_per_boundary():
    detections = _detections([
        ('2015-05-01', 2015, 500, 500),
        ('2012-03-01', 2012, 200, 700),
        ('2018-09-09', 2018, 1500, 500),
    ])

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert list(resolved.columns) == ['ID', 'first_date', 'first_year', 'geometry']
    rows = resolved.set_index('ID')
    assert sorted(rows.index) == ['A', 'B']
    assert rows.loc['A', 'first_year'] == 2012
    assert rows.loc['A', 'first_date'] == pd.Timestamp(2012, 3, 1)
    assert rows.loc['B', 'first_year'] == 2018


def test_first_year_matches_first_date():
    detections = _detections([
        ('2015-05-01', 2015, 500, 500),
        ('2016-01-31', 2016, 1500, 500),
        ('2011-12-31', 2011, 2500, 500),
    ])

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert len(resolved) == 3
    assert (resolved['first_date'].dt.year == resolved['first_year']).all()


def test_detection_on_edge_does_not_infest():
    detections = _detections([
        ('2015-05-01', 2015, 500, 500),
        ('2010-05-01', 2010, 1000, 500),
    ])

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert list(resolved['ID']) == ['A']
    assert resolved['first_year'].iloc[0] == 2015


def test_tied_earliest_dates_collapse_to_one_row():
    detections = _detections([
        ('2014-06-01', 2014, 100, 100),
        ('2014-06-01', 2014, 900, 900),
        ('2016-06-01', 2016, 500, 500),
    ])

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert len(resolved) == 1
    assert resolved['first_year'].iloc[0] == 2014


def test_inconsistent_year_is_discarded():
    detections = _detections([
        ('2012-03-01', 2010, 500, 500),
        ('2015-05-01', 2015, 1500, 500),
    ])

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert list(resolved['ID']) == ['B']


def test_no_contained_detections_is_empty_not_error():
    detections = _detections([('2015-05-01', 2015, 5000, 5000)])

    resolved = resolve_infested_boundaries(_boundaries(), detections)

    assert resolved.empty
    assert list(resolved.columns) == ['ID', 'first_date', 'first_year', 'geometry']


def test_detections_reprojected_to_boundary_crs():
    detections = _detections([('2015-05-01', 2015, 500, 500)]).to_crs("EPSG:4326")

    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    assert list(resolved['ID']) == ['A']


def test_write_infested_boundaries_shortens_fields(tmp_path):
    detections = _detections([('2015-05-01', 2015, 500, 500)])
    resolved = resolve_infested_boundaries(_boundaries(), detections, simplify_tolerance=0)

    path = write_infested_boundaries(resolved, tmp_path / 'infested.shp')
    written = gpd.read_file(path)

    assert {'ID', 'FirstDate', 'FirstYear'} <= set(written.columns)
    assert written['FirstDate'].iloc[0] == '2015-05-01'
    assert written['FirstYear'].iloc[0] == 2015
