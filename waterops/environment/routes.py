"""
Environment Routes

Weather snapshots, odour incidents and sources, plume predictions and
site map uploads.
"""

import logging

from flask import request, jsonify, current_app, send_from_directory
from flask_login import login_required, current_user
from waterops.environment import environment_bp
from waterops.extensions import db
from waterops.models import OdourIncident, SiteMap
from waterops.services import odour as odour_service
from waterops.services.plume import active_predictions
from waterops.services.sites import resolve_site_id
from waterops.services.weather import latest_snapshot, recent_snapshots

logger = logging.getLogger(__name__)


def _site_id():
    return resolve_site_id(current_user, request.args.get('site_id'))


# Weather

@environment_bp.route('/weather/latest')
@login_required
def weather_latest():
    snapshot = latest_snapshot(_site_id())
    if snapshot is None:
        return jsonify({'error': 'No weather data available'}), 404
    return jsonify(snapshot.to_dict())


@environment_bp.route('/weather')
@login_required
def weather_history():
    limit = request.args.get('limit', 48, type=int)
    return jsonify([s.to_dict() for s in recent_snapshots(_site_id(), limit)])


# Odour incidents

@environment_bp.route('/odour/incidents', methods=['GET'])
@login_required
def list_incidents():
    limit = request.args.get('limit', odour_service.INCIDENT_LIMIT, type=int)
    return jsonify([i.to_dict() for i in odour_service.list_incidents(_site_id(), limit)])


@environment_bp.route('/odour/incidents', methods=['POST'])
@login_required
def create_incident():
    data = request.get_json(silent=True) or request.form
    try:
        incident = odour_service.create_incident(_site_id(), data, current_user.id,
                                                 notify=current_user.is_supervisor)
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(incident.to_dict()), 201


@environment_bp.route('/odour/incidents/<int:incident_id>/status', methods=['PATCH'])
@login_required
def update_incident_status(incident_id):
    incident = OdourIncident.query.filter_by(id=incident_id, site_id=_site_id()).first_or_404()
    try:
        odour_service.update_incident_status(incident, (request.get_json(silent=True) or {}).get('status'))
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(incident.to_dict())


# Odour sources

@environment_bp.route('/odour/sources', methods=['GET'])
@login_required
def list_sources():
    return jsonify([s.to_dict() for s in odour_service.list_sources(_site_id())])


@environment_bp.route('/odour/sources', methods=['POST'])
@login_required
def create_source():
    try:
        source = odour_service.create_source(_site_id(), request.get_json(silent=True) or {})
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(source.to_dict()), 201


@environment_bp.route('/odour/sources/<int:source_id>', methods=['DELETE'])
@login_required
def delete_source(source_id):
    if not odour_service.delete_source(_site_id(), source_id):
        return jsonify({'error': 'Source not found'}), 404
    return jsonify({'deleted': source_id})


@environment_bp.route('/odour/predictions')
@login_required
def list_predictions():
    return jsonify([p.to_dict() for p in active_predictions(_site_id())])


# Site maps

@environment_bp.route('/maps', methods=['GET'])
@login_required
def list_maps():
    maps = SiteMap.query.filter_by(site_id=_site_id()).order_by(SiteMap.id).all()
    return jsonify([m.to_dict() for m in maps])


@environment_bp.route('/maps', methods=['POST'])
@login_required
def upload_map():
    """Upload a site plan image as multipart ``file`` with optional coordinates."""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({'error': 'No file uploaded'}), 400
    try:
        site_map = odour_service.save_site_map(
            _site_id(),
            upload,
            user_id=current_user.id,
            name=request.form.get('name'),
            description=request.form.get('description'),
            latitude=request.form.get('latitude'),
            longitude=request.form.get('longitude'),
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(site_map.to_dict()), 201


@environment_bp.route('/maps/<int:map_id>/coordinates', methods=['PATCH'])
@login_required
def update_map_coordinates(map_id):
    site_map = SiteMap.query.filter_by(id=map_id, site_id=_site_id()).first_or_404()
    data = request.get_json(silent=True) or {}
    try:
        odour_service.update_map_coordinates(site_map, data.get('latitude'), data.get('longitude'))
    except (TypeError, ValueError):
        db.session.rollback()
        return jsonify({'error': 'latitude and longitude must be numbers'}), 400
    return jsonify(site_map.to_dict())


@environment_bp.route('/maps/files/<path:filename>')
def site_map_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
