"""
Result descriptors

The statically known contract (type, CRS, units, schema) of an operator's
output, fixed once the operator is initialized.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from geoquery.core.primitives import (
    UNITLESS,
    ClassificationMeasurement,
    ContinuousMeasurement,
    Measurement,
    SpatialReference,
)
from geoquery.raster.data_type import RasterDataType
from geoquery.vector.collection import FeatureDataType, VectorDataType


@dataclass(frozen=True)
class RasterResultDescriptor:
    """
    Contract of a raster operator

    Attributes:
        data_type: Pixel type of every produced tile
        spatial_reference: CRS of the tiles (None if unreferenced)
        measurement: What the pixel values measure
        no_data_value: Sentinel of missing pixels
    """

    data_type: RasterDataType
    spatial_reference: SpatialReference | None = None
    measurement: Measurement = UNITLESS
    no_data_value: float | None = None

    def with_spatial_reference(self, spatial_reference: SpatialReference) -> "RasterResultDescriptor":
        return replace(self, spatial_reference=spatial_reference)


@dataclass(frozen=True)
class VectorResultDescriptor:
    """
    Contract of a vector operator

    Attributes:
        data_type: Geometry kind (or DATA for attribute-only collections)
        spatial_reference: CRS of the geometries
        columns: Attribute names mapped to their types, in column order
    """

    data_type: VectorDataType
    spatial_reference: SpatialReference | None = None
    columns: dict[str, FeatureDataType] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "columns", dict(self.columns))

    def with_spatial_reference(self, spatial_reference: SpatialReference) -> "VectorResultDescriptor":
        return replace(self, spatial_reference=spatial_reference)

    def with_columns(self, columns: dict[str, FeatureDataType]) -> "VectorResultDescriptor":
        merged = dict(self.columns)
        merged.update(columns)
        return replace(self, columns=merged)


ResultDescriptor = RasterResultDescriptor | VectorResultDescriptor


def measurement_to_dict(measurement: Measurement) -> dict[str, Any]:
    if isinstance(measurement, ContinuousMeasurement):
        return {"type": "continuous", "measurement": measurement.measurement, "unit": measurement.unit}
    if isinstance(measurement, ClassificationMeasurement):
        return {
            "type": "classification",
            "measurement": measurement.measurement,
            "classes": {str(k): v for k, v in measurement.classes.items()},
        }
    return {"type": "unitless"}


def measurement_from_dict(data: dict[str, Any] | None) -> Measurement:
    kind = (data or {}).get("type", "unitless")
    if kind == "continuous":
        return ContinuousMeasurement(data["measurement"], data.get("unit"))
    if kind == "classification":
        return ClassificationMeasurement(
            data["measurement"], {int(k): v for k, v in data.get("classes", {}).items()}
        )
    return UNITLESS


def raster_descriptor_to_dict(descriptor: RasterResultDescriptor) -> dict[str, Any]:
    return {
        "dataType": str(descriptor.data_type),
        "spatialReference": (
            str(descriptor.spatial_reference) if descriptor.spatial_reference is not None else None
        ),
        "measurement": measurement_to_dict(descriptor.measurement),
        "noDataValue": descriptor.no_data_value,
    }


def raster_descriptor_from_dict(data: dict[str, Any]) -> RasterResultDescriptor:
    spatial_reference = data.get("spatialReference")
    return RasterResultDescriptor(
        data_type=RasterDataType(data["dataType"]),
        spatial_reference=SpatialReference.from_str(spatial_reference) if spatial_reference else None,
        measurement=measurement_from_dict(data.get("measurement")),
        no_data_value=data.get("noDataValue"),
    )
