"""Print a summary of the stored workout snapshot.

Usage:
    python scripts/describe_snapshot.py

Reads through the configured backend (`SNAPSHOT_BACKEND`), so it shows
exactly what the app would restore on its next start.
"""

from collections import Counter
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)) + '/..')

from logs import configure_logging
from repo_snapshot import build_repo
from service_session import SessionStore
from settings import settings


def main():
    configure_logging()
    store = SessionStore(build_repo())
    workouts = store.restore()

    print('Backend:', settings.snapshot_backend)
    print('Workouts:', len(workouts))
    if not workouts:
        return

    by_type = Counter(w.type for w in workouts)
    print('\nBy type:')
    for t, c in by_type.most_common():
        print(f'  {c:6d}  {t}')

    print('\nTotals:')
    print(f'  distance: {sum(w.distance for w in workouts):.1f} km')
    print(f'  duration: {sum(w.duration for w in workouts):.0f} min')

    dates = [w.created_at for w in workouts]
    print('\nCreated:')
    print('  earliest:', min(dates).isoformat())
    print('  latest:  ', max(dates).isoformat())

    print('\nEntries:')
    for w in workouts:
        print(f'  {w.id[:8]}  {w.icon} {w.label:<20} {w.distance:>6} km  {w.metric:6.1f} {w.metric_unit}')


if __name__ == '__main__':
    main()
