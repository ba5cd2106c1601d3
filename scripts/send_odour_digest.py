"""Email the weekly odour incident digest for every site.

Usage: python scripts/send_odour_digest.py [days]
"""
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from waterops.services.notifications import send_odour_digest, EmailNotConfigured

days = int(sys.argv[1]) if len(sys.argv) > 1 else 7

with app.app_context():
    try:
        result = send_odour_digest(days=days)
    except EmailNotConfigured as e:
        print(e)
        sys.exit(1)
    for site in result['results']:
        print(f"{site['site']}: {site['incident_count']} incidents, {site['emails_sent']} emails sent")
