"""Approve a registered operator and give them the admin role.

Usage: python scripts/make_admin.py user@example.com
"""
import sys
import os
from datetime import datetime

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from waterops.extensions import db
from waterops.models import User

if len(sys.argv) != 2:
    print("Usage: python scripts/make_admin.py <email>")
    sys.exit(1)

email = sys.argv[1].strip().lower()

with app.app_context():
    user = User.query.filter_by(email=email).first()

    if not user:
        print(f"No user registered with {email}")
        sys.exit(1)

    user.role = 'admin'
    if not user.is_approved:
        user.is_approved = True
        user.approved_at = datetime.utcnow()
    db.session.commit()
    print(f"{email} approved and promoted to admin")
