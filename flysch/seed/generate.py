from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from ..geo.location import SERIALIZERS, LocationEncoding, normalize
from ..schools.models import School
from ..schools.tiers import classify
from .config import DEFAULT_SEED_CONFIG, SeedConfig

# name, city, state, lat, lng, website
KNOWN_SCHOOLS: list[tuple[str, str, str, float, float, str]] = [
    ("Embry-Riddle Aeronautical University", "Daytona Beach", "FL", 29.1892, -81.0478, "https://erau.edu"),
    ("Phoenix East Aviation", "Daytona Beach", "FL", 29.1796, -81.0581, "https://phoenixeastaviation.com"),
    ("Dean International", "Miami", "FL", 25.7617, -80.1918, "https://deanintl.com"),
    ("TransPac Aviation Academy", "Phoenix", "AZ", 33.6883, -112.0872, "https://transpacaviation.com"),
    ("Guidance Aviation", "Prescott", "AZ", 34.5400, -112.4685, "https://guidanceaviation.com"),
    ("California Flight Center", "San Diego", "CA", 32.7157, -117.1611, "https://californiaflight.com"),
    ("Sunrise Aviation", "Santa Monica", "CA", 34.0195, -118.4912, "https://sunriseaviation.com"),
    ("Sierra Academy of Aeronautics", "Oakland", "CA", 37.8044, -122.2712, "https://sierraacademy.com"),
    ("US Aviation Academy", "Denton", "TX", 33.2148, -97.1331, "https://usaviationacademy.com"),
    ("Chicagoland Aviation", "Chicago", "IL", 41.8781, -87.6298, "https://chicagolandaviation.com"),
    ("Independence Aviation", "Denver", "CO", 39.8561, -104.6737, "https://independenceaviation.com"),
    ("Rainier Flight Service", "Seattle", "WA", 47.6062, -122.3321, "https://rainierflight.com"),
    ("Leading Edge Aviation", "Bend", "OR", 44.0582, -121.3153, "https://leaviation.com"),
    ("Thunderbird Aviation", "Minneapolis", "MN", 44.9778, -93.2650, "https://thunderbirdaviation.com"),
    ("Purdue Aviation", "West Lafayette", "IN", 40.4237, -86.9212, "https://purdue.edu/aviation"),
    ("Thrust Flight", "Tampa", "FL", 27.9506, -82.4572, "https://thrustflight.com"),
]

MOCK_CITIES: list[tuple[str, str, float, float]] = [
    ("Austin", "TX", 30.2672, -97.7431),
    ("Portland", "OR", 45.5152, -122.6784),
    ("Salt Lake City", "UT", 40.7608, -111.8910),
    ("Indianapolis", "IN", 39.7684, -86.1581),
    ("Columbus", "GA", 32.4609, -84.9877),
    ("Jacksonville", "FL", 30.3322, -81.6557),
    ("San Antonio", "TX", 29.4241, -98.4936),
    ("Fort Worth", "TX", 32.7555, -97.3308),
    ("Charlotte", "NC", 35.2271, -80.8431),
    ("Detroit", "MI", 42.3314, -83.0458),
]

SCHOOL_SUFFIXES = [
    "Aviation Academy",
    "Flight School",
    "Aviation Training Center",
    "Flight Training",
    "Flight Academy",
    "Pilot Training Center",
]

AIRCRAFT_TYPES = ["Cessna 172", "Cessna 152", "Piper PA-28", "Piper PA-44", "Diamond DA-40", "Diamond DA-42"]

ZIP_PREFIXES = {
    "FL": "3", "AZ": "8", "CA": "9", "TX": "7", "GA": "3", "IL": "6", "CO": "8",
    "WA": "9", "NC": "2", "MN": "5", "OR": "9", "UT": "8", "IN": "4", "MI": "4",
}

# Rotated across records so the seed exercises every location parser.
LOCATION_ENCODINGS = [
    LocationEncoding.EWKB,
    LocationEncoding.WKT,
    LocationEncoding.GEOJSON,
    LocationEncoding.OBJECT,
    LocationEncoding.ARRAY,
]


def _programs(rng: random.Random) -> list[dict[str, Any]]:
    catalogue = [
        {
            "type": "PPL",
            "minCost": 8000 + rng.randrange(2000),
            "maxCost": 12000 + rng.randrange(3000),
            "inclusions": ["aircraft", "instructor", "materials"],
            "minHours": {"part61": 40, "part141": 35},
            "minMonths": 3,
            "maxMonths": 6,
            "trainingType": ["Part 61", "Part 141"],
        },
        {
            "type": "IR",
            "minCost": 6000 + rng.randrange(2000),
            "maxCost": 10000 + rng.randrange(2000),
            "inclusions": ["aircraft", "instructor", "simulator"],
            "minHours": {"part61": 50, "part141": 40},
            "minMonths": 2,
            "maxMonths": 4,
            "trainingType": ["Part 61", "Part 141"],
        },
        {
            "type": "CPL",
            "minCost": 25000 + rng.randrange(5000),
            "maxCost": 35000 + rng.randrange(5000),
            "inclusions": ["aircraft", "instructor", "materials", "checkride"],
            "minHours": {"part61": 250, "part141": 190},
            "minMonths": 6,
            "maxMonths": 12,
            "trainingType": ["Part 61", "Part 141"],
        },
        {
            "type": "CFI",
            "minCost": 5000 + rng.randrange(2000),
            "maxCost": 8000 + rng.randrange(2000),
            "inclusions": ["aircraft", "instructor", "materials"],
            "minHours": {"part61": 25},
            "minMonths": 1,
            "maxMonths": 2,
            "trainingType": ["Part 61"],
        },
    ]
    return catalogue[: rng.randint(2, 4)]


def _fleet(rng: random.Random) -> dict[str, Any]:
    aircraft = [
        {
            "type": AIRCRAFT_TYPES[i],
            "count": rng.randint(1, 4),
            "hasG1000": rng.random() > 0.5,
            "hourlyRate": 120 + rng.randrange(80),
        }
        for i in range(rng.randint(1, 3))
    ]
    fleet: dict[str, Any] = {
        "aircraft": aircraft,
        "totalAircraft": sum(a["count"] for a in aircraft),
    }
    if rng.random() > 0.4:
        fleet["simulators"] = {"count": rng.randint(1, 2), "types": ["AATD", "BATD"]}
    return fleet


def _signals(rng: random.Random) -> dict[str, Any]:
    return {
        "avgHoursToPPL": 55 + rng.randrange(20),
        "avgHoursToIR": 55 + rng.randrange(15),
        "avgHoursToCPL": 200 + rng.randrange(80),
        "cancellationRate": 5 + rng.randrange(15),
        "fleetUtilization": 60 + rng.randrange(30),
        "studentSatisfaction": round(3.5 + rng.random() * 1.5, 2),
        "passRateFirstAttempt": 75 + rng.randrange(20),
        "avgTimeToComplete": 4 + rng.randrange(6),
    }


def _encode_location(lat: float, lng: float, index: int) -> Any:
    point = normalize({"lat": lat, "lng": lng})
    if point is None:
        return None
    encoding = LOCATION_ENCODINGS[index % len(LOCATION_ENCODINGS)]
    return SERIALIZERS[encoding](point)


def _school_record(
    rng: random.Random,
    index: int,
    name: str,
    city: str,
    state: str,
    lat: float,
    lng: float,
    website: str,
) -> dict[str, Any]:
    now = datetime.now(timezone.utc).isoformat()
    record: dict[str, Any] = {
        "id": str(uuid.UUID(int=rng.getrandbits(128), version=4)),
        "name": name,
        "location": _encode_location(lat, lng, index),
        "address": f"{city}, {state}",
        "city": city,
        "state": state,
        "zip_code": ZIP_PREFIXES.get(state, "9") + str(1000 + rng.randrange(9000)),
        "country": "USA",
        "programs": _programs(rng),
        "fleet": _fleet(rng),
        "instructors_count": rng.randint(3, 20),
        "fsp_signals": _signals(rng),
        "website": website,
        "phone": f"({rng.randint(200, 999)}) {rng.randint(200, 999)}-{rng.randint(1000, 9999)}",
        "verified_at": now if rng.random() > 0.3 else None,
        "created_at": now,
        "updated_at": now,
    }
    record["trust_tier"] = classify(School.model_validate(record)).value
    return record


def generate_schools(mock_count: int = 30, random_seed: int | None = None) -> list[dict[str, Any]]:
    """Known schools followed by ``mock_count`` generated ones."""
    rng = random.Random(random_seed)
    records: list[dict[str, Any]] = []

    for name, city, state, lat, lng, website in KNOWN_SCHOOLS:
        records.append(_school_record(rng, len(records), name, city, state, lat, lng, website))

    for i in range(mock_count):
        city, state, lat, lng = MOCK_CITIES[i % len(MOCK_CITIES)]
        suffix = rng.choice(SCHOOL_SUFFIXES)
        website = f"https://{city.lower().replace(' ', '')}-aviation.com"
        records.append(
            _school_record(rng, len(records), f"{city} {suffix}", city, state, lat, lng, website)
        )

    return records


def run_seed(config: SeedConfig = DEFAULT_SEED_CONFIG) -> Path:
    """
    Generate the seed dataset and write it as a JSON array of school rows.
    """
    config.output_path.parent.mkdir(parents=True, exist_ok=True)

    records = generate_schools(config.mock_count, config.random_seed)
    df = pd.DataFrame.from_records(records)
    df.to_json(config.output_path, orient="records", indent=2, double_precision=15)
    return config.output_path


if __name__ == "__main__":
    path = run_seed()
    print(f"Seeding complete. School data saved to: {path}")
