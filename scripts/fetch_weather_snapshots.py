"""Store a weather snapshot for every site with map coordinates.

Meant to be run from cron, e.g. hourly.
"""
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from waterops.services.weather import fetch_weather_snapshots

with app.app_context():
    result = fetch_weather_snapshots()
    print(result['message'])
    if result.get('skipped_sites'):
        print(f"Skipped sites: {result['skipped_sites']}")
