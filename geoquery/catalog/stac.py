"""
STAC item model

The subset of a STAC API search response needed to turn catalog items into
load instructions: item time, projection EPSG code, and per-asset location,
pixel shape and geo-transform.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def parse_datetime(value: str) -> datetime:
    """Parse an RFC 3339 timestamp (``Z`` suffix allowed) into an aware UTC datetime"""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class StacAsset:
    """
    One file of a STAC item

    Attributes:
        href: URL of the file
        proj_shape: Pixel shape as [rows, cols] (``proj:shape``)
        proj_transform: Affine coefficients [a, b, c, d, e, f, ...] (``proj:transform``)
    """

    href: str
    proj_shape: tuple[int, int] | None = None
    proj_transform: tuple[float, ...] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StacAsset":
        shape = data.get("proj:shape")
        transform = data.get("proj:transform")
        return cls(
            href=data["href"],
            proj_shape=tuple(int(v) for v in shape) if shape is not None else None,
            proj_transform=tuple(float(v) for v in transform) if transform is not None else None,
        )

    def gdal_geotransform(self) -> tuple[float, float, float, float, float, float] | None:
        """
        GDAL ordering (c, a, b, f, d, e) of the asset's affine transform

        Returns:
            None if the asset carries no usable ``proj:transform``

        Examples:
            >>> StacAsset("x", proj_transform=(60, 0, 600000, 0, -60, 3400020)).gdal_geotransform()
            (600000.0, 60.0, 0.0, 3400020.0, 0.0, -60.0)
        """
        if self.proj_transform is None or len(self.proj_transform) < 6:
            return None
        a, b, c, d, e, f = self.proj_transform[:6]
        return (c, a, b, f, d, e)


@dataclass(frozen=True)
class StacFeature:
    """A STAC item: acquisition time, projection and assets by band name"""

    id: str
    datetime: datetime
    proj_epsg: int | None
    assets: dict[str, StacAsset] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StacFeature":
        properties = data["properties"]
        epsg = properties.get("proj:epsg")
        return cls(
            id=data.get("id", ""),
            datetime=parse_datetime(properties["datetime"]),
            proj_epsg=int(epsg) if epsg is not None else None,
            assets={name: StacAsset.from_dict(asset) for name, asset in data.get("assets", {}).items()},
        )


@dataclass(frozen=True)
class StacContext:
    """Paging information of a search response"""

    page: int
    limit: int
    matched: int
    returned: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StacContext":
        limit = int(data["limit"])
        if limit < 1:
            raise ValueError(f"page limit must be positive, got {limit}")
        return cls(
            page=int(data.get("page", 1)),
            limit=limit,
            matched=int(data["matched"]),
            returned=int(data.get("returned", 0)),
        )


@dataclass(frozen=True)
class StacCollection:
    """One page of a STAC search response"""

    features: list[StacFeature]
    context: StacContext

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StacCollection":
        return cls(
            features=[StacFeature.from_dict(f) for f in data.get("features", [])],
            context=StacContext.from_dict(data["context"]),
        )
