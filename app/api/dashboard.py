"""
Dashboard and Activity Routes Blueprint

- /api/dashboard/stats: Headline numbers for the operator
- /api/dashboard/activity: Recent activity feed (?limit=, max 100)
"""

import logging
from flask import Blueprint, request, jsonify

from auth import login_required, current_user_id
from database import get_db_session
from services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

# Create blueprint
dashboard_bp = Blueprint('dashboard_bp', __name__)


@dashboard_bp.route('/api/dashboard/stats', methods=['GET'])
@login_required
def get_stats():
    with get_db_session() as db:
        stats = DashboardService(db, current_user_id()).get_stats()
    return jsonify({'success': True, 'stats': stats})


@dashboard_bp.route('/api/dashboard/activity', methods=['GET'])
@login_required
def get_activity():
    """Most recent events across quotes, jobs, invoices and payments"""
    limit = min(request.args.get('limit', 20, type=int), 100)

    with get_db_session() as db:
        events = DashboardService(db, current_user_id()).get_activity(limit=limit)
    return jsonify({'success': True, 'events': events})
