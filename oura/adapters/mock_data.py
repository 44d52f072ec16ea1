"""Mock Oura collection generator for demo mode.

Produces one record per calendar day in [start, end] (inclusive) with
realistic value ranges. Randomness comes from the injected random.Random,
so a seeded generator yields reproducible payloads.
"""

import random
from collections.abc import Iterator
from datetime import date, timedelta
from typing import Any


def _days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _collection(data: list[dict[str, Any]]) -> dict[str, Any]:
    return {"data": data, "next_token": None}


def generate_activity(rng: random.Random, start: date, end: date) -> dict[str, Any]:
    data = []
    for day in _days(start, end):
        day_str = day.isoformat()
        data.append(
            {
                "id": f"activity-{day_str}",
                "day": day_str,
                "score": rng.randrange(70, 100),
                "active_calories": rng.randrange(400, 700),
                "total_calories": rng.randrange(2000, 2500),
                "steps": rng.randrange(6000, 11000),
                "equivalent_walking_distance": rng.randrange(5000, 10000),
                "high_activity_time": rng.randrange(1800, 5400),
                "medium_activity_time": rng.randrange(3600, 10800),
                "low_activity_time": rng.randrange(7200, 18000),
                "non_wear_time": rng.randrange(0, 3600),
                "resting_time": rng.randrange(28800, 57600),
                "sedentary_time": rng.randrange(14400, 36000),
                "timestamp": f"{day_str}T00:00:00+00:00",
            }
        )
    return _collection(data)


def generate_sleep(rng: random.Random, start: date, end: date) -> dict[str, Any]:
    data = []
    for day in _days(start, end):
        day_str = day.isoformat()
        total = rng.randrange(25200, 32400)  # 7-9 hours, seconds
        deep = int(total * rng.uniform(0.15, 0.25))
        rem = int(total * rng.uniform(0.20, 0.30))
        data.append(
            {
                "id": f"sleep-{day_str}",
                "day": day_str,
                "score": rng.randrange(70, 100),
                "total_sleep_duration": total,
                "deep_sleep_duration": deep,
                "light_sleep_duration": total - deep - rem,
                "rem_sleep_duration": rem,
                "awake_time": rng.randrange(600, 2400),
                "efficiency": rng.randrange(85, 95),
                "latency": rng.randrange(300, 1200),
                "timing": rng.randrange(50, 150),
                "timestamp": f"{day_str}T00:00:00+00:00",
            }
        )
    return _collection(data)


def generate_readiness(rng: random.Random, start: date, end: date) -> dict[str, Any]:
    data = []
    for day in _days(start, end):
        day_str = day.isoformat()
        data.append(
            {
                "id": f"readiness-{day_str}",
                "day": day_str,
                "score": rng.randrange(70, 100),
                "temperature_deviation": round(rng.uniform(-0.5, 0.5), 2),
                "temperature_trend_deviation": round(rng.uniform(-0.2, 0.2), 2),
                "activity_balance": rng.randrange(70, 100),
                "body_temperature": round(36.5 + rng.uniform(0, 0.5), 2),
                "hrv_balance": rng.randrange(70, 100),
                "previous_day_activity": rng.randrange(70, 100),
                "previous_night": rng.randrange(70, 100),
                "recovery_index": rng.randrange(70, 100),
                "resting_heart_rate": rng.randrange(50, 70),
                "sleep_balance": rng.randrange(70, 100),
                "timestamp": f"{day_str}T00:00:00+00:00",
            }
        )
    return _collection(data)


def generate_heart_rate(rng: random.Random, start: date, end: date) -> dict[str, Any]:
    """Hourly samples, 24 per day."""
    data = []
    for day in _days(start, end):
        day_str = day.isoformat()
        for hour in range(24):
            data.append(
                {
                    "bpm": rng.randrange(60, 100),
                    "source": "ring",
                    "timestamp": f"{day_str}T{hour:02d}:00:00+00:00",
                }
            )
    return _collection(data)
