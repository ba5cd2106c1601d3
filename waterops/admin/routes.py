"""
Admin Routes

Admin authentication is session-based and separate from operator
authentication.
"""

import logging
from datetime import datetime

from flask import request, jsonify, session, current_app
from waterops.admin import admin_bp
from waterops.admin.decorators import admin_required
from waterops.extensions import db
from waterops.models import User, Site, Reading, AlertEvent, EmailRecipient
from waterops.services.sites import create_site

logger = logging.getLogger(__name__)

ROLES = ('operator', 'supervisor', 'admin')
ALERT_TYPES = ('all', 'warning', 'critical')


def _payload():
    return request.get_json(silent=True) or request.form


@admin_bp.route('/login', methods=['GET', 'POST'])
def admin_login():
    """Admin login, independent of operator login."""
    if request.method == 'GET':
        if session.get('is_admin'):
            return jsonify({'is_admin': True, 'admin_username': session.get('admin_username')})
        return jsonify({'error': 'Admin login required'}), 401

    data = _payload()
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    if not username or not password:
        return jsonify({'error': 'Please enter both username and password.'}), 400

    if username == current_app.config['ADMIN_USERNAME'] and password == current_app.config['ADMIN_PASSWORD']:
        session.clear()
        session['is_admin'] = True
        session['admin_username'] = username
        return jsonify({'message': 'Welcome, Administrator!'})

    logger.warning('Failed admin login for %s', username)
    return jsonify({'error': 'Invalid administrator credentials.'}), 401


@admin_bp.route('/logout', methods=['GET', 'POST'])
def admin_logout():
    """Admin logout - clears entire session."""
    session.clear()
    return jsonify({'message': 'You have been logged out of the admin panel.'})


@admin_bp.route('/dashboard')
@admin_required
def admin_dashboard():
    """System overview counts."""
    return jsonify({
        'admin_username': session.get('admin_username', 'Admin'),
        'total_users': User.query.count(),
        'pending_users': User.query.filter_by(is_approved=False).count(),
        'total_sites': Site.query.count(),
        'total_readings': Reading.query.count(),
        'active_alerts': AlertEvent.query.filter_by(status='active').count(),
    })


@admin_bp.route('/users')
@admin_required
def list_users():
    query = User.query
    if request.args.get('pending'):
        query = query.filter_by(is_approved=False)
    return jsonify([u.to_dict() for u in query.order_by(User.created_at.desc()).all()])


@admin_bp.route('/users/<int:user_id>/approve', methods=['POST'])
@admin_required
def approve_user(user_id):
    """Approve an account and optionally set its role and site."""
    user = User.query.get_or_404(user_id)
    data = _payload()

    role = data.get('role')
    if role is not None and role not in ROLES:
        return jsonify({'error': f'role must be one of {", ".join(ROLES)}'}), 400
    site_id = data.get('site_id')
    if site_id is not None and db.session.get(Site, int(site_id)) is None:
        return jsonify({'error': 'Site not found'}), 404

    try:
        user.is_approved = True
        user.approved_at = datetime.utcnow()
        if role:
            user.role = role
        if site_id is not None:
            user.site_id = int(site_id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error('Could not approve user %s: %s', user_id, e)
        return jsonify({'error': 'Could not approve user.'}), 500

    logger.info('Approved user %s', user.email)
    return jsonify(user.to_dict())


@admin_bp.route('/sites', methods=['GET', 'POST'])
@admin_required
def manage_sites():
    """List sites or add a new one."""
    if request.method == 'POST':
        data = _payload()
        try:
            site = create_site(data.get('name'), data.get('address'), data.get('timezone'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            db.session.rollback()
            logger.error('Could not add site: %s', e)
            return jsonify({'error': 'Could not add site.'}), 500
        return jsonify(site.to_dict()), 201

    return jsonify([s.to_dict() for s in Site.query.order_by(Site.name).all()])


def _alert_types(raw):
    types = raw or ['all']
    if isinstance(types, str):
        types = [t.strip() for t in types.split(',') if t.strip()]
    invalid = [t for t in types if t not in ALERT_TYPES]
    if invalid:
        raise ValueError(f'Unknown alert types: {", ".join(invalid)}')
    return types


@admin_bp.route('/recipients', methods=['GET', 'POST'])
@admin_required
def manage_recipients():
    """List email recipients or add one."""
    if request.method == 'POST':
        data = _payload()
        name = (data.get('name') or '').strip()
        email = (data.get('email') or '').strip()
        if not name or '@' not in email:
            return jsonify({'error': 'Name and a valid email are required.'}), 400
        try:
            recipient = EmailRecipient(
                site_id=data.get('site_id'),
                name=name,
                email=email,
                alert_types=_alert_types(data.get('alert_types')),
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        try:
            db.session.add(recipient)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error('Could not add recipient: %s', e)
            return jsonify({'error': 'Could not add recipient.'}), 500
        return jsonify(recipient.to_dict()), 201

    query = EmailRecipient.query
    if request.args.get('site_id'):
        query = query.filter_by(site_id=int(request.args['site_id']))
    return jsonify([r.to_dict() for r in query.order_by(EmailRecipient.name).all()])


@admin_bp.route('/recipients/<int:recipient_id>', methods=['PATCH', 'DELETE'])
@admin_required
def edit_recipient(recipient_id):
    recipient = EmailRecipient.query.get_or_404(recipient_id)

    if request.method == 'DELETE':
        db.session.delete(recipient)
        db.session.commit()
        return jsonify({'deleted': recipient_id})

    data = _payload()
    try:
        if 'alert_types' in data:
            recipient.alert_types = _alert_types(data.get('alert_types'))
        if 'is_active' in data:
            recipient.is_active = bool(data['is_active'])
        if data.get('name'):
            recipient.name = data['name'].strip()
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(recipient.to_dict())
