"""
Odour and Site Map Services

Odour incident and source records, and site map uploads stored under
``UPLOAD_FOLDER``.
"""

import logging
import os
import time

from flask import current_app
from werkzeug.utils import secure_filename

from waterops.extensions import db
from waterops.models import OdourIncident, OdourSource, SiteMap
from waterops.services.notifications import send_odour_alert, EmailNotConfigured
from waterops.services.readings import parse_timestamp

logger = logging.getLogger(__name__)

INCIDENT_LIMIT = 200
INTENSITY_RANGE = (0, 6)
INCIDENT_STATUSES = ('open', 'investigating', 'resolved', 'closed')

_INCIDENT_FIELDS = ('description', 'odour_type', 'character', 'notes', 'wind_speed', 'wind_dir',
                    'temperature', 'humidity', 'weather')


def list_incidents(site_id, limit=INCIDENT_LIMIT):
    return OdourIncident.query.filter_by(site_id=site_id)\
        .order_by(OdourIncident.occurred_at.desc()).limit(min(limit, INCIDENT_LIMIT)).all()


def _incident_status(value):
    status = value or 'open'
    if status not in INCIDENT_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(INCIDENT_STATUSES)}")
    return status


def create_incident(site_id, data, user_id=None, notify=False):
    """Record an odour incident.

    With ``notify`` set, a high-intensity incident is emailed to the site
    recipients. A missing email configuration is logged and the incident is
    still saved.
    """
    try:
        lat = float(data['lat'])
        lng = float(data['lng'])
    except (KeyError, TypeError, ValueError):
        raise ValueError('lat and lng are required numbers')
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError('lat/lng out of range')

    intensity = data.get('intensity')
    if intensity is not None:
        intensity = int(intensity)
        if not INTENSITY_RANGE[0] <= intensity <= INTENSITY_RANGE[1]:
            raise ValueError('intensity must be between 0 and 6')

    incident = OdourIncident(
        site_id=site_id,
        lat=lat,
        lng=lng,
        intensity=intensity,
        status=_incident_status(data.get('status')),
        occurred_at=parse_timestamp(data.get('occurred_at')),
        created_by=user_id,
    )
    for field in _INCIDENT_FIELDS:
        if data.get(field) is not None:
            setattr(incident, field, data[field])
    db.session.add(incident)
    db.session.commit()
    logger.info('Recorded odour incident %s at site %s', incident.id, site_id)

    if notify:
        try:
            send_odour_alert(incident)
        except EmailNotConfigured as e:
            logger.warning('Odour incident %s not emailed: %s', incident.id, e)
    return incident


def update_incident_status(incident, status):
    if not status:
        raise ValueError('status is required')
    incident.status = _incident_status(status)
    db.session.commit()
    return incident


def _validate_geometry(geometry):
    if not isinstance(geometry, dict):
        raise ValueError('geometry is required')
    if geometry.get('type') == 'point':
        if geometry.get('x') is None or geometry.get('y') is None:
            raise ValueError('point geometry needs x and y')
    elif geometry.get('type') == 'polygon':
        coords = geometry.get('coordinates')
        if not coords or not all('x' in c and 'y' in c for c in coords):
            raise ValueError('polygon geometry needs coordinates with x and y')
    else:
        raise ValueError('geometry type must be point or polygon')
    return geometry


def list_sources(site_id):
    return OdourSource.query.filter_by(site_id=site_id).order_by(OdourSource.id).all()


def create_source(site_id, data):
    source = OdourSource(
        site_id=site_id,
        name=data.get('name'),
        geometry=_validate_geometry(data.get('geometry')),
        base_intensity=data.get('base_intensity'),
    )
    db.session.add(source)
    db.session.commit()
    return source


def delete_source(site_id, source_id):
    source = OdourSource.query.filter_by(id=source_id, site_id=site_id).first()
    if source is None:
        return False
    db.session.delete(source)
    db.session.commit()
    return True


def allowed_map_file(filename):
    allowed = current_app.config['ALLOWED_MAP_EXTENSIONS']
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed


def save_site_map(site_id, upload, user_id=None, name=None, description=None,
                  latitude=None, longitude=None):
    """Store an uploaded map image and record it for the site."""
    filename = secure_filename(upload.filename or '')
    if not filename or not allowed_map_file(filename):
        raise ValueError('Unsupported map file type')

    try:
        latitude = float(latitude) if latitude not in (None, '') else None
        longitude = float(longitude) if longitude not in (None, '') else None
    except (TypeError, ValueError):
        raise ValueError('latitude and longitude must be numbers')

    ext = filename.rsplit('.', 1)[1].lower()
    storage_path = f'{site_id}/{int(time.time() * 1000)}.{ext}'
    target = os.path.join(current_app.config['UPLOAD_FOLDER'], storage_path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    upload.save(target)

    site_map = SiteMap(
        site_id=site_id,
        name=name or filename,
        description=description,
        file_name=filename,
        storage_path=storage_path,
        mime_type=upload.mimetype or 'application/octet-stream',
        latitude=latitude,
        longitude=longitude,
        uploaded_by=user_id,
    )
    db.session.add(site_map)
    db.session.commit()
    logger.info('Stored site map %s for site %s', storage_path, site_id)
    return site_map


def update_map_coordinates(site_map, latitude, longitude):
    site_map.latitude = float(latitude) if latitude is not None else None
    site_map.longitude = float(longitude) if longitude is not None else None
    db.session.commit()
    return site_map
