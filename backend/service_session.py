"""
Service / facade layer for the workout session.

`SessionStore` owns the ordered in-memory list of workouts and is the only
writer of the durable snapshot. It is free of storage code: it calls a
repository (`repo_snapshot.py`) to read and write the snapshot. All write
paths should go through this service so memory and snapshot stay in step.

Key responsibilities:
- validate raw numbers before any record is built
- build the right workout variant and append it (append-only, insertion order)
- write the full snapshot right after every successful append
- rebuild the list from the snapshot as plain data (no recomputation)
- reset both memory and snapshot
"""

import math
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

import structlog
from pydantic import ValidationError

from models import VARIANTS, WORKOUT_LIST, Cycling, Running, WorkoutIn, build_workout, new_id
from repo_snapshot import SnapshotStorageError

logger = structlog.get_logger(__name__)

AnyWorkout = Union[Running, Cycling]


class InvalidWorkoutError(ValueError):
    """Form input was rejected; nothing was created or stored."""


def _valid_inputs(*values: Optional[float]) -> bool:
    return all(
        isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v) and v > 0
        for v in values
    )


class SessionStore:
    """In-memory workout list + its durable snapshot.

    Example usage:
        repo = FileSnapshotRepo("data/workouts.json")
        store = SessionStore(repo)
        store.restore()
        store.create_record("running", (10, 10), 5, 25, 180)
    """

    def __init__(self, repo, clock: Optional[Callable[[], datetime]] = None):
        self.repo = repo
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._workouts: List[AnyWorkout] = []
        # held across append + snapshot write, restore and reset
        self._lock = threading.RLock()
        self.logger = logger.bind(component="session_store")

    @property
    def workouts(self) -> Tuple[AnyWorkout, ...]:
        return tuple(self._workouts)

    def __len__(self) -> int:
        return len(self._workouts)

    def __iter__(self) -> Iterator[AnyWorkout]:
        return iter(tuple(self._workouts))

    def create_record(self, kind: str, coords, distance: Optional[float],
                      duration: Optional[float], metric: Optional[float]) -> AnyWorkout:
        """Validate, build, append and persist one workout.

        Raises:
        - `InvalidWorkoutError` if the kind is unknown or any number is
          missing, non-finite, zero or negative. The list is untouched.

        A failed snapshot write is logged, not raised: the workout stays in
        memory and the next successful write will include it.
        """

        kind = (kind or "").strip().lower()
        if kind not in VARIANTS:
            self.logger.info("Workout rejected", reason="unknown type", type=kind)
            raise InvalidWorkoutError(f"Unsupported workout type: {kind!r}")

        if not _valid_inputs(distance, duration, metric):
            self.logger.info(
                "Workout rejected", reason="invalid numbers",
                distance=distance, duration=duration, metric=metric,
            )
            raise InvalidWorkoutError("Inputs have to be positive numbers")

        workout = build_workout(kind, tuple(coords), distance, duration, metric,
                                created_at=self.clock())

        with self._lock:
            while self.find_by_id(workout.id) is not None:
                workout = workout.model_copy(update={"id": new_id()})

            self._workouts.append(workout)
            self.logger.info(
                "Workout created", id=workout.id, type=workout.type, label=workout.label
            )

            try:
                self.snapshot()
            except SnapshotStorageError as e:
                self.logger.error(
                    "Snapshot write failed after create", id=workout.id, error=str(e)
                )
        return workout

    def ingest(self, request: WorkoutIn) -> AnyWorkout:
        """Create a workout from the structured form request."""

        return self.create_record(
            request.type, request.coords, request.distance, request.duration, request.metric
        )

    def snapshot(self) -> List[Dict[str, Any]]:
        """Serialize the whole list, write it as a full replace and return it.

        Raises `SnapshotStorageError` if the repository write fails.
        """

        with self._lock:
            data = WORKOUT_LIST.dump_python(self._workouts, mode="json", by_alias=True)
            self.repo.save(data)
        self.logger.debug("Snapshot written", count=len(data))
        return data

    def restore(self) -> Tuple[AnyWorkout, ...]:
        """Replace the in-memory list with the stored snapshot.

        A missing snapshot gives an empty list. An unreadable or malformed
        one is logged and also gives an empty list.
        """

        with self._lock:
            self._workouts = self._load_snapshot()
            return self.workouts

    def _load_snapshot(self) -> List[AnyWorkout]:
        try:
            data = self.repo.load()
        except SnapshotStorageError as e:
            self.logger.warning("Snapshot unavailable, starting empty", error=str(e))
            data = None

        if data is None:
            return []

        try:
            workouts = WORKOUT_LIST.validate_python(data)
        except ValidationError as e:
            self.logger.warning("Snapshot corrupt, starting empty", errors=e.error_count())
            return []

        self.logger.info("Snapshot restored", count=len(workouts))
        return workouts

    def reset(self) -> None:
        """Drop every workout and delete the durable snapshot."""

        with self._lock:
            self._workouts = []
            self.repo.clear()
        self.logger.info("Session reset")

    def find_by_id(self, workout_id: str) -> Optional[AnyWorkout]:
        for workout in self._workouts:
            if workout.id == workout_id:
                return workout
        return None

    def health_check(self) -> None:
        """Check that the snapshot storage is reachable."""

        self.repo.ping()