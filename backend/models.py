"""
Pydantic models used across the backend.

Two kinds of shapes live here:
- `WorkoutIn`: the inbound request produced by the UI form. Numbers are
  optional so that an empty form field reaches `SessionStore` and is
  rejected there with a friendly message instead of a schema error.
- `Running` / `Cycling`: the stored workout records, combined into the
  `Workout` tagged union on the `type` field.

Records are frozen. There are two ways to get one:
- `Running.create(...)` / `Cycling.create(...)` / `build_workout(...)`
  assign `id` and `created_at` and compute `pace`/`speed` and `label`.
- `model_validate(...)` (or `WORKOUT_LIST.validate_python(...)`) takes
  every field verbatim from snapshot data. Nothing is recomputed on this
  path, so a restored record carries exactly what was serialized.

Field aliases match the JSON the browser version of the app kept in
localStorage (`date`, `description`, `elevation`), so old snapshots load.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

Coords = Tuple[float, float]


def describe(kind: str, when: datetime) -> str:
    """Build the label shown in the list and the map popup, e.g. `Running on March`."""

    return f"{kind[0].upper()}{kind[1:]} on {MONTHS[when.month - 1]}"


def new_id() -> str:
    return uuid4().hex


class WorkoutIn(BaseModel):
    """Input shape for a workout submitted from the map form.

    Fields:
    - `type`: `running` or `cycling` (case-insensitive).
    - `coords`: `[lat, lng]` of the map click.
    - `distance`: kilometers.
    - `duration`: minutes.
    - `metric`: cadence (spm) for running, elevation gain (m) for cycling.
    """

    type: str
    coords: Coords
    distance: Optional[float] = None
    duration: Optional[float] = None
    metric: Optional[float] = None


class WorkoutBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    created_at: datetime = Field(alias="date")
    coords: Coords
    distance: float
    duration: float
    label: str = Field(alias="description")

    @property
    def popup_class(self) -> str:
        return f"{self.type}-popup"


class Running(WorkoutBase):
    type: Literal["running"] = "running"
    cadence: float
    pace: float

    @classmethod
    def create(cls, coords: Coords, distance: float, duration: float, cadence: float,
               created_at: Optional[datetime] = None) -> "Running":
        created_at = created_at or datetime.now(timezone.utc)
        return cls(
            id=new_id(),
            created_at=created_at,
            coords=coords,
            distance=distance,
            duration=duration,
            cadence=cadence,
            # min/km
            pace=duration / distance,
            label=describe("running", created_at),
        )

    @property
    def metric(self) -> float:
        return self.pace

    @property
    def metric_unit(self) -> str:
        return "min/km"

    @property
    def detail(self) -> float:
        return self.cadence

    @property
    def detail_unit(self) -> str:
        return "spm"

    @property
    def icon(self) -> str:
        return "🏃‍♂️"


class Cycling(WorkoutBase):
    type: Literal["cycling"] = "cycling"
    elevation_gain: float = Field(alias="elevation")
    speed: float

    @classmethod
    def create(cls, coords: Coords, distance: float, duration: float, elevation_gain: float,
               created_at: Optional[datetime] = None) -> "Cycling":
        created_at = created_at or datetime.now(timezone.utc)
        return cls(
            id=new_id(),
            created_at=created_at,
            coords=coords,
            distance=distance,
            duration=duration,
            elevation_gain=elevation_gain,
            # km/h: duration is in minutes
            speed=distance / (duration / 60),
            label=describe("cycling", created_at),
        )

    @property
    def metric(self) -> float:
        return self.speed

    @property
    def metric_unit(self) -> str:
        return "km/h"

    @property
    def detail(self) -> float:
        return self.elevation_gain

    @property
    def detail_unit(self) -> str:
        return "m"

    @property
    def icon(self) -> str:
        return "🚴"


Workout = Annotated[Union[Running, Cycling], Field(discriminator="type")]

WORKOUT_LIST = TypeAdapter(list[Workout])

VARIANTS = {
    "running": Running,
    "cycling": Cycling,
}


def build_workout(kind: str, coords: Coords, distance: float, duration: float,
                  metric: float, created_at: Optional[datetime] = None) -> Union[Running, Cycling]:
    """Construct a fresh record of the given kind. Inputs must already be validated."""

    return VARIANTS[kind].create(coords, distance, duration, metric, created_at=created_at)
