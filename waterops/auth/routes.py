"""
Auth Routes

Operator authentication routes using Flask-Login. New accounts must be
approved by an administrator before they can log in.
"""

import logging

from flask import request, jsonify, session
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import generate_password_hash, check_password_hash
from waterops.auth import auth_bp
from waterops.extensions import db
from waterops.models import User

logger = logging.getLogger(__name__)


def _payload():
    return request.get_json(silent=True) or request.form


@auth_bp.route('/register', methods=['POST'])
def register():
    """Operator registration"""
    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    display_name = (data.get('display_name') or '').strip() or None

    # Validation
    if not email or '@' not in email:
        return jsonify({'error': 'Please provide a valid email address.'}), 400

    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters long.'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered.'}), 409

    hashed_password = generate_password_hash(password, method='pbkdf2:sha256')
    new_user = User(email=email, display_name=display_name, password_hash=hashed_password)

    try:
        db.session.add(new_user)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error('Registration error: %s', e)
        return jsonify({'error': 'An error occurred during registration.'}), 500

    return jsonify({
        'message': 'Registration successful. Your account is awaiting approval.',
        'user': new_user.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Operator login"""
    if request.method == 'GET':
        if current_user.is_authenticated:
            return jsonify({'user': current_user.to_dict()})
        return jsonify({'error': 'Login required'}), 401

    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    remember = bool(data.get('remember', False))

    if not email or not password:
        return jsonify({'error': 'Please provide both email and password.'}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return jsonify({'error': 'Invalid email or password.'}), 401

    if not user.is_approved:
        return jsonify({'error': 'Your account is pending approval.'}), 403

    login_user(user, remember=remember)
    # Operator login never carries admin rights
    session.pop('is_admin', None)
    return jsonify({'message': 'Logged in', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST', 'GET'])
@login_required
def logout():
    """Operator logout"""
    session.pop('is_admin', None)
    logout_user()
    return jsonify({'message': 'You have been logged out.'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())
