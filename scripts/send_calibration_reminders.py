"""Email reminders for calibrations due within N days (default 1).

Usage: python scripts/send_calibration_reminders.py [days_ahead]
"""
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from waterops.services.notifications import send_calibration_reminders, EmailNotConfigured

days_ahead = int(sys.argv[1]) if len(sys.argv) > 1 else 1

with app.app_context():
    try:
        result = send_calibration_reminders(days_ahead=days_ahead)
    except EmailNotConfigured as e:
        print(e)
        sys.exit(1)
    print(result['message'])
    for error in result.get('errors', []):
        print(f"  failed: {error}")
