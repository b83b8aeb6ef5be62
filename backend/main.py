from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from typing import List
import random

import structlog

from logs import configure_logging
from models import WorkoutIn
from repo_snapshot import SnapshotStorageError, build_repo
from service_session import InvalidWorkoutError, SessionStore
from settings import settings

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="Mapty Backend")

# Instantiate the repo + store here so the routes remain thin and
# replaceable for testing (tests swap `store` for one on a fake repo).
repo = build_repo()
store = SessionStore(repo)
store.restore()


def workout_out(workout) -> dict:
    """Wire shape for the UI: snapshot fields plus display helpers."""

    out = workout.model_dump(mode="json", by_alias=True)
    out.update({
        "icon": workout.icon,
        "metric": workout.metric,
        "metricUnit": workout.metric_unit,
        "detail": workout.detail,
        "detailUnit": workout.detail_unit,
    })
    return out


def marker_out(workout) -> dict:
    return {
        "id": workout.id,
        "coords": list(workout.coords),
        "popup": f"{workout.icon} {workout.label}",
        "className": workout.popup_class,
    }


@app.get("/health")
def health():
    try:
        store.health_check()
        return {"ok": True}
    except SnapshotStorageError as e:
        raise HTTPException(status_code=500, detail=f"Storage health check failed: {e}")


@app.post("/workouts", status_code=201)
def create_workout(workout: WorkoutIn):
    try:
        created = store.ingest(workout)
    except InvalidWorkoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return workout_out(created)


@app.get("/workouts")
def list_workouts():
    return [workout_out(w) for w in store]


@app.get("/workouts/{workout_id}")
def get_workout(workout_id: str):
    workout = store.find_by_id(workout_id)
    if workout is None:
        raise HTTPException(status_code=404, detail="Workout not found")
    return workout_out(workout)


@app.get("/workouts/{workout_id}/view")
def workout_view(workout_id: str):
    """Where the map should pan when a list entry is clicked."""

    workout = store.find_by_id(workout_id)
    if workout is None:
        raise HTTPException(status_code=404, detail="Workout not found")
    return {"coords": list(workout.coords), "zoom": settings.map_zoom_level}


@app.get("/markers")
def markers():
    return [marker_out(w) for w in store]


@app.post("/reset")
def reset():
    try:
        store.reset()
    except SnapshotStorageError as e:
        raise HTTPException(status_code=500, detail=f"Reset failed: {e}")
    return {"ok": True}


@app.post("/seed")
def seed(lat: float = 51.505, lng: float = -0.09, count: int = 5):
    created: List[dict] = []
    for _ in range(max(0, min(count, 50))):
        coords = (lat + random.uniform(-0.02, 0.02), lng + random.uniform(-0.02, 0.02))
        if random.random() < 0.5:
            workout = store.create_record(
                "running", coords,
                round(random.uniform(3, 15), 1),
                random.randint(15, 90),
                random.randint(150, 190),
            )
        else:
            workout = store.create_record(
                "cycling", coords,
                round(random.uniform(10, 60), 1),
                random.randint(30, 180),
                random.randint(20, 900),
            )
        created.append(workout_out(workout))

    # NOTE: go through the store, NOT the raw repo
    logger.info("Seeded demo workouts", count=len(created))
    return {"inserted": len(created)}


@app.get("/ui", response_class=HTMLResponse)
def ui():
    return UI_HTML.replace("__ZOOM__", str(settings.map_zoom_level))


UI_HTML = """
<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <title>Mapty</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css"/>
  <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
  <style>
    body { font-family: Arial, sans-serif; margin: 0; display: flex; height: 100vh; }
    .sidebar { width: 380px; padding: 16px; overflow: auto; background: #2d3439; color: #ececec; }
    #map { flex: 1; }
    .form { display: grid; grid-template-columns: 1fr 1fr; gap: 8px; background: #42484d; padding: 12px; border-radius: 6px; }
    .hidden { display: none; }
    .form__row--hidden { display: none; }
    input, select, button { padding: 6px; }
    .workouts { list-style: none; padding: 0; }
    .workout { background: #42484d; border-radius: 6px; padding: 10px; margin: 10px 0; cursor: pointer; border-left: 5px solid; }
    .workout.running { border-left-color: #00c46a; }
    .workout.cycling { border-left-color: #ffb545; }
    .workout__details { display: inline-block; margin-right: 12px; }
    .running-popup .leaflet-popup-content-wrapper { border-left: 5px solid #00c46a; }
    .cycling-popup .leaflet-popup-content-wrapper { border-left: 5px solid #ffb545; }
  </style>
</head>
<body>
  <div class="sidebar">
    <h2>Mapty</h2>
    <form class="form hidden">
      <div class="form__row"><label>Type</label>
        <select class="form__input--type"><option value="running">Running</option><option value="cycling">Cycling</option></select></div>
      <div class="form__row"><label>Distance</label><input class="form__input--distance" placeholder="km"/></div>
      <div class="form__row"><label>Duration</label><input class="form__input--duration" placeholder="min"/></div>
      <div class="form__row"><label>Cadence</label><input class="form__input--cadence" placeholder="step/min"/></div>
      <div class="form__row form__row--hidden"><label>Elev Gain</label><input class="form__input--elevation" placeholder="meters"/></div>
      <button>OK</button>
    </form>
    <ul class="workouts"></ul>
    <button onclick="resetAll()">Reset</button>
  </div>
  <div id="map"></div>

<script>
const ZOOM = __ZOOM__;
const form = document.querySelector('.form');
const list = document.querySelector('.workouts');
const inputType = document.querySelector('.form__input--type');
const field = name => document.querySelector(`.form__input--${name}`);
let map, clicked;

function num(v){ return v.trim() === '' ? null : Number(v); }

// labels and ids come back from the stored snapshot verbatim
function esc(v){
  return String(v).replace(/[&<>"']/g, c => ({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;"})[c]);
}

function renderWorkout(w){
  list.insertAdjacentHTML('afterbegin', `<li class="workout ${esc(w.type)}" data-id="${esc(w.id)}">
    <h3>${esc(w.description)}</h3>
    <span class="workout__details">${w.icon} ${w.distance} km</span>
    <span class="workout__details">⏱ ${w.duration} min</span>
    <span class="workout__details">⚡️ ${w.metric.toFixed(1)} ${w.metricUnit}</span>
    <span class="workout__details">${w.type === 'running' ? '🦶🏼' : '⛰'} ${w.detail} ${w.detailUnit}</span>
  </li>`);
}

function renderMarker(m){
  L.marker(m.coords).addTo(map)
    .bindPopup(L.popup({maxWidth: 250, minWidth: 100, autoClose: false, closeOnClick: false, className: m.className}))
    .setPopupContent(Object.assign(document.createElement('span'), {textContent: m.popup})).openPopup();
}

async function load(){
  const workouts = await (await fetch('/workouts')).json();
  list.innerHTML = '';
  workouts.forEach(renderWorkout);
  if (map) (await (await fetch('/markers')).json()).forEach(renderMarker);
}

function loadMap(coords){
  map = L.map('map').setView(coords, ZOOM);
  L.tileLayer('https://{s}.tile.openstreetmap.fr/hot/{z}/{x}/{y}.png', {
    attribution: '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
  }).addTo(map);
  map.on('click', e => { clicked = e; form.classList.remove('hidden'); field('distance').focus(); });
  load();
}

inputType.addEventListener('change', () => {
  field('elevation').closest('.form__row').classList.toggle('form__row--hidden');
  field('cadence').closest('.form__row').classList.toggle('form__row--hidden');
});

form.addEventListener('submit', async e => {
  e.preventDefault();
  const type = inputType.value;
  const body = {
    type,
    coords: [clicked.latlng.lat, clicked.latlng.lng],
    distance: num(field('distance').value),
    duration: num(field('duration').value),
    metric: num(field(type === 'running' ? 'cadence' : 'elevation').value),
  };
  const res = await fetch('/workouts', {method: 'POST', headers: {'Content-Type': 'application/json'}, body: JSON.stringify(body)});
  if (!res.ok) return alert('Not valid Input');
  const w = await res.json();
  renderWorkout(w);
  renderMarker({coords: w.coords, popup: `${w.icon} ${w.description}`, className: `${w.type}-popup`});
  ['distance', 'duration', 'cadence', 'elevation'].forEach(n => field(n).value = '');
  form.classList.add('hidden');
});

list.addEventListener('click', async e => {
  const el = e.target.closest('.workout');
  if (!el || !map) return;
  const res = await fetch(`/workouts/${el.dataset.id}/view`);
  if (!res.ok) return;
  const view = await res.json();
  map.setView(view.coords, view.zoom, {animate: true, pan: {duration: 1}});
});

async function resetAll(){
  await fetch('/reset', {method: 'POST'});
  location.reload();
}

if (navigator.geolocation) {
  navigator.geolocation.getCurrentPosition(p => loadMap([p.coords.latitude, p.coords.longitude]), () => alert('Could not get your position'));
}
load();
</script>
</body>
</html>
"""
