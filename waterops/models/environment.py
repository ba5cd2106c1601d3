"""
Weather and Odour Models
"""

from datetime import datetime
from waterops.extensions import db


class WeatherSnapshot(db.Model):
    """Periodic weather sample for a site with derived stability class"""
    __tablename__ = 'weather_snapshots'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    wind_speed_mps = db.Column(db.Float)
    wind_direction_deg = db.Column(db.Float)
    temperature_c = db.Column(db.Float)
    cloud_cover_pct = db.Column(db.Float)
    solar_elevation_deg = db.Column(db.Float)
    stability_class = db.Column(db.String(1))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
            'wind_speed_mps': self.wind_speed_mps,
            'wind_direction_deg': self.wind_direction_deg,
            'temperature_c': self.temperature_c,
            'cloud_cover_pct': self.cloud_cover_pct,
            'solar_elevation_deg': self.solar_elevation_deg,
            'stability_class': self.stability_class,
        }

    def __repr__(self):
        return f'<WeatherSnapshot site:{self.site_id} {self.stability_class}>'


class OdourIncident(db.Model):
    """Odour complaint or observation pinned on the site map"""
    __tablename__ = 'odour_incidents'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    intensity = db.Column(db.Integer)
    description = db.Column(db.Text)
    odour_type = db.Column(db.String(40))
    character = db.Column(db.String(80))
    notes = db.Column(db.Text)
    wind_speed = db.Column(db.Float)
    wind_dir = db.Column(db.Float)
    temperature = db.Column(db.Float)
    humidity = db.Column(db.Float)
    weather = db.Column(db.JSON)
    status = db.Column(db.String(16), default='open', nullable=False)
    occurred_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'lat': self.lat,
            'lng': self.lng,
            'intensity': self.intensity,
            'odour_type': self.odour_type,
            'status': self.status,
            'description': self.description,
            'character': self.character,
            'notes': self.notes,
            'wind_speed': self.wind_speed,
            'wind_dir': self.wind_dir,
            'temperature': self.temperature,
            'humidity': self.humidity,
            'weather': self.weather,
            'occurred_at': self.occurred_at.isoformat() if self.occurred_at else None,
            'created_by': self.created_by,
        }


class OdourSource(db.Model):
    """Known emission point or area, in map-percent coordinates"""
    __tablename__ = 'odour_sources'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    name = db.Column(db.String(120))
    # {"type": "point", "x": .., "y": ..} or {"type": "polygon", "coordinates": [{"x":..,"y":..}, ..]}
    geometry = db.Column(db.JSON, nullable=False)
    base_intensity = db.Column(db.Float)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'name': self.name,
            'geometry': self.geometry,
            'base_intensity': self.base_intensity,
        }


class OdourPrediction(db.Model):
    """Plume footprint predicted for a source over a validity window"""
    __tablename__ = 'odour_predictions'

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, db.ForeignKey('sites.id'), nullable=False, index=True)
    source_id = db.Column(db.Integer, db.ForeignKey('odour_sources.id'), nullable=False)
    valid_from = db.Column(db.DateTime)
    valid_to = db.Column(db.DateTime, index=True)
    geometry = db.Column(db.JSON, nullable=False)
    peak_intensity = db.Column(db.Float)
    model_version = db.Column(db.String(32))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'source_id': self.source_id,
            'valid_from': self.valid_from.isoformat() if self.valid_from else None,
            'valid_to': self.valid_to.isoformat() if self.valid_to else None,
            'geometry': self.geometry,
            'peak_intensity': self.peak_intensity,
            'model_version': self.model_version,
        }
