"""Shared fixtures: synthetic rasters, detection files and boundary sources"""

import geopandas as gpd
import matplotlib
import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

matplotlib.use('Agg')


def write_raster(path, data, transform, crs="EPSG:4326", nodata=None):
    with rasterio.open(
        path,
        'w',
        driver='GTiff',
        height=data.shape[0],
        width=data.shape[1],
        count=1,
        dtype='float32',
        crs=crs,
        transform=transform,
        nodata=nodata
    ) as dst:
        dst.write(data.astype(np.float32), 1)
    return path


def write_detections(path, rows):
    pd.DataFrame(rows, columns=['observedDate', 'lon', 'lat']).to_csv(path, index=False)
    return path


@pytest.fixture
def importance_raster(tmp_path):
    """4x4 importance grid over southern Michigan with zero cells"""
    data = np.array([
        [0, 12, 15, 0],
        [8, 20, 0, 5],
        [0, 30, 25, 10],
        [3, 0, 0, 7],
    ], dtype=np.float32)
    transform = from_origin(-85.0, 43.0, 0.5, 0.5)
    return write_raster(tmp_path / 'importance.tif', data, transform)


@pytest.fixture
def county_atlas(tmp_path):
    """Three 1-degree 'counties' in WGS84 with a GEOID field"""
    counties = gpd.GeoDataFrame(
        {
            'GEOID': ['26001', '26002', '26003'],
            'NAME': ['Alpha', 'Beta', 'Gamma'],
        },
        geometry=[
            box(-85.0, 41.0, -84.0, 42.0),
            box(-84.0, 41.0, -83.0, 42.0),
            box(-85.0, 42.0, -84.0, 43.0),
        ],
        crs="EPSG:4326"
    )
    path = tmp_path / 'counties.gpkg'
    counties.to_file(path, driver='GPKG')
    return path


@pytest.fixture
def census_divisions(tmp_path):
    """One census division shapefile with a CDUID field"""
    divisions = gpd.GeoDataFrame(
        {
            'CDUID': ['3501'],
            'CDNAME': ['Delta'],
        },
        geometry=[box(-84.0, 42.0, -83.0, 43.0)],
        crs="EPSG:4326"
    )
    path = tmp_path / 'divisions.shp'
    divisions.to_file(path, driver='ESRI Shapefile')
    return path


@pytest.fixture
def detections_csv(tmp_path):
    return write_detections(tmp_path / 'detections.csv', [
        ('15-06-2010', -84.5, 41.5),
        ('02-07-2012', -84.4, 41.6),
        ('20-05-2015', -83.5, 41.5),
        ('11-08-2019', -83.5, 42.5),
    ])
