"""
Tests for the STAC item model
"""

from datetime import datetime, timezone

import pytest

from geoquery.catalog.stac import StacAsset, StacCollection, StacFeature, parse_datetime


def test_parse_datetime_z_suffix():
    assert parse_datetime("2021-01-02T10:02:26Z") == datetime(2021, 1, 2, 10, 2, 26, tzinfo=timezone.utc)


def test_parse_datetime_offset():
    assert parse_datetime("2021-01-02T12:02:26+02:00") == datetime(2021, 1, 2, 10, 2, 26, tzinfo=timezone.utc)


def test_parse_datetime_fraction():
    assert parse_datetime("2014-01-01T00:00:00.0Z") == datetime(2014, 1, 1, tzinfo=timezone.utc)


class TestStacAsset:
    """Test asset parsing"""

    def test_from_dict(self):
        asset = StacAsset.from_dict({
            "href": "https://example.com/B01.tif",
            "proj:shape": [1830, 1830],
            "proj:transform": [60, 0, 600000, 0, -60, 3400020, 0, 0, 1],
        })

        assert asset.proj_shape == (1830, 1830)
        assert asset.gdal_geotransform() == (600000.0, 60.0, 0.0, 3400020.0, 0.0, -60.0)

    def test_missing_projection(self):
        asset = StacAsset.from_dict({"href": "https://example.com/B01.tif"})

        assert asset.proj_shape is None
        assert asset.gdal_geotransform() is None

    def test_short_transform(self):
        assert StacAsset("x", proj_transform=(60.0, 0.0, 600000.0)).gdal_geotransform() is None


class TestStacCollection:
    """Test search response parsing"""

    def test_from_dict(self):
        collection = StacCollection.from_dict({
            "type": "FeatureCollection",
            "features": [{
                "id": "S2B_32RPU_20210102_0_L2A",
                "properties": {"datetime": "2021-01-02T10:02:26Z", "proj:epsg": 32632},
                "assets": {"B01": {"href": "https://example.com/B01.tif"}},
            }],
            "context": {"page": 1, "limit": 500, "matched": 1, "returned": 1},
        })

        (feature,) = collection.features
        assert isinstance(feature, StacFeature)
        assert feature.proj_epsg == 32632
        assert feature.assets["B01"].href == "https://example.com/B01.tif"
        assert collection.context.matched == 1

    def test_missing_context(self):
        with pytest.raises(KeyError):
            StacCollection.from_dict({"features": []})

    def test_feature_without_epsg(self):
        feature = StacFeature.from_dict({"properties": {"datetime": "2021-01-02T10:02:26Z"}})

        assert feature.proj_epsg is None
        assert feature.assets == {}
