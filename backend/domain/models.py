"""
Core domain models for the place resolution engine.
These are framework-agnostic and shared by the spatial stores and services.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from domain.errors import ResolutionError


class FeatureClass(str, Enum):
    """
    Single-letter category of a geographic record.

    Every class lives in its own store partition; a query always targets
    exactly one class.
    """
    ADMINISTRATIVE = "A"  # country, state, region
    HYDROGRAPHIC = "H"  # stream, lake
    AREA = "L"  # parks, area
    POPULATED = "P"  # city, village
    ROAD = "R"  # road, railroad
    SPOT = "S"  # spot, building, farm
    HYPSOGRAPHIC = "T"  # mountain, hill, rock
    UNDERSEA = "U"
    VEGETATION = "V"  # forest, heath


FEATURE_CODE_ADM1 = "ADM1"
FEATURE_CODE_ADM3 = "ADM3"
FEATURE_CODE_ADM4 = "ADM4"

# Populated places that are a sub-unit of a city
DISTRICT_FEATURE_CODES = frozenset({"PPL", "PPLX"})
# Populated places that are themselves an administrative seat
ADMIN_SEAT_FEATURE_CODES = frozenset({"PPLA", "PPLA2", "PPLA3", "PPLA4", "PPLA5", "PPLC"})

# A resolved city with more inhabitants than this counts as urban
CITY_POPULATION = 2000
MAX_PLACES_NEAR = 10


def check_coordinate(latitude: float, longitude: float, label: str = "coordinate") -> None:
    """Raise ValueError unless latitude is in [-90, 90] and longitude in [-180, 180]."""
    try:
        lat, lon = float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label} ({latitude!r}, {longitude!r})") from None
    # NaN fails both range tests
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise ValueError(f"Invalid {label} ({latitude}, {longitude})")


@dataclass
class PlaceRecord:
    """
    A geographic record as handed out by a spatial store.

    `distance` (planar, coordinate degrees) and `distance_meters` (great
    circle, display only) are filled per query; they are never persisted.
    """
    external_id: int
    name: str
    latitude: float
    longitude: float
    feature_class: FeatureClass
    feature_code: str
    country_code: str
    ascii_name: Optional[str] = None
    alternate_names: List[str] = field(default_factory=list)
    admin1_code: Optional[str] = None
    admin2_code: Optional[str] = None
    admin3_code: Optional[str] = None
    admin4_code: Optional[str] = None
    population: Optional[int] = None
    elevation: Optional[int] = None
    timezone: Optional[str] = None
    distance: Optional[float] = None
    distance_meters: Optional[float] = None

    def __post_init__(self) -> None:
        self.feature_class = FeatureClass(self.feature_class)
        check_coordinate(self.latitude, self.longitude, label=f"coordinate for place {self.external_id}")

    @property
    def coordinate(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    @property
    def population_count(self) -> int:
        """Population with unknown treated as 0."""
        return self.population or 0

    @property
    def is_district_like(self) -> bool:
        return self.feature_code in DISTRICT_FEATURE_CODES

    @property
    def is_admin_seat_like(self) -> bool:
        return self.feature_code in ADMIN_SEAT_FEATURE_CODES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "ascii_name": self.ascii_name,
            "alternate_names": list(self.alternate_names),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "feature_class": self.feature_class.value,
            "feature_code": self.feature_code,
            "country_code": self.country_code,
            "admin1_code": self.admin1_code,
            "admin2_code": self.admin2_code,
            "admin3_code": self.admin3_code,
            "admin4_code": self.admin4_code,
            "population": self.population,
            "elevation": self.elevation,
            "timezone": self.timezone,
            "distance": self.distance,
            "distance_meters": self.distance_meters,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaceRecord":
        return cls(
            external_id=int(data["external_id"]),
            name=data["name"],
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            feature_class=FeatureClass(data["feature_class"]),
            feature_code=data["feature_code"],
            country_code=data["country_code"],
            ascii_name=data.get("ascii_name"),
            alternate_names=list(data.get("alternate_names") or []),
            admin1_code=data.get("admin1_code"),
            admin2_code=data.get("admin2_code"),
            admin3_code=data.get("admin3_code"),
            admin4_code=data.get("admin4_code"),
            population=data.get("population"),
            elevation=data.get("elevation"),
            timezone=data.get("timezone"),
            distance=data.get("distance"),
            distance_meters=data.get("distance_meters"),
        )


def ensure_store_rows(rows: Any, feature_class: FeatureClass) -> List[PlaceRecord]:
    """
    Check the shape of a spatial store answer.

    Raises ResolutionError unless `rows` is a list of PlaceRecord of the
    queried class, each with a non-negative distance, in ascending order.
    """
    if not isinstance(rows, (list, tuple)):
        raise ResolutionError(
            f"Spatial store returned {type(rows).__name__} for class {feature_class.value}, expected a list"
        )
    records: List[PlaceRecord] = []
    previous = 0.0
    for index, row in enumerate(rows):
        if not isinstance(row, PlaceRecord):
            raise ResolutionError(
                f"Row {index} for class {feature_class.value} is {type(row).__name__}, expected PlaceRecord"
            )
        if row.feature_class != feature_class:
            raise ResolutionError(
                f"Row {index} has class {row.feature_class.value}, queried {feature_class.value}"
            )
        distance = row.distance
        if (
            isinstance(distance, bool)
            or not isinstance(distance, (int, float))
            or math.isnan(distance)
            or distance < 0
        ):
            raise ResolutionError(f"Row {index} for class {feature_class.value} has invalid distance {distance!r}")
        if distance < previous:
            raise ResolutionError(f"Rows for class {feature_class.value} are not ordered by distance")
        previous = distance
        records.append(row)
    return records


@dataclass(frozen=True)
class ResolveOptions:
    """
    Per-call switches for PlaceResolver.resolve.

    None for `timeout` or `candidate_limit` means the configured default.
    """
    debug: bool = False  # log every store query with its duration
    verbose: bool = False  # log the candidate table and the resolved hierarchy
    timeout: Optional[float] = None
    candidate_limit: Optional[int] = None


@dataclass(frozen=True)
class NotFound:
    """No populated place was found near the coordinate."""
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {"found": False, "latitude": self.latitude, "longitude": self.longitude}


@dataclass
class ResolvedPlace:
    """
    A populated place annotated with its district, city, state, country and
    nearby points of interest.

    Created fresh for every resolve call and owned by the caller afterwards.
    """
    latitude: float
    longitude: float
    place: PlaceRecord
    district: Optional[PlaceRecord] = None
    city: Optional[PlaceRecord] = None
    state: Optional[PlaceRecord] = None
    country: Optional[str] = None
    parks: List[PlaceRecord] = field(default_factory=list)
    forests: List[PlaceRecord] = field(default_factory=list)
    mountains: List[PlaceRecord] = field(default_factory=list)
    spots: List[PlaceRecord] = field(default_factory=list)
    places_near: List[PlaceRecord] = field(default_factory=list)
    elapsed: Optional[float] = None

    @property
    def country_code(self) -> str:
        return self.place.country_code

    @property
    def population_admin(self) -> int:
        return self.city.population_count if self.city is not None else 0

    @property
    def is_city(self) -> bool:
        return self.population_admin > CITY_POPULATION

    @property
    def full_name(self) -> str:
        """Compose "<place>, <city>, <state>, <country>" prefixed by nearby POIs."""
        name = self.place.name
        for part in (self.city, self.state):
            if part is not None and part.name not in name:
                name = f"{name}, {part.name}"
        if self.country:
            name = f"{name}, {self.country}"
        for pois in (self.parks, self.mountains, self.spots):
            if pois and pois[0].name not in name:
                name = f"{pois[0].name}, {name}"
        return name

    def to_dict(self) -> Dict[str, Any]:
        def _one(record: Optional[PlaceRecord]) -> Optional[Dict[str, Any]]:
            return record.to_dict() if record is not None else None

        return {
            "found": True,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "place": self.place.to_dict(),
            "district": _one(self.district),
            "city": _one(self.city),
            "state": _one(self.state),
            "country": self.country,
            "country_code": self.country_code,
            "full_name": self.full_name,
            "is_city": self.is_city,
            "population_admin": self.population_admin,
            "parks": [p.to_dict() for p in self.parks],
            "forests": [p.to_dict() for p in self.forests],
            "mountains": [p.to_dict() for p in self.mountains],
            "spots": [p.to_dict() for p in self.spots],
            "places_near": [p.to_dict() for p in self.places_near],
            "elapsed": self.elapsed,
        }
