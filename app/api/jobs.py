"""
Job Routes Blueprint

- /api/jobs                          - list (?status=, ?search=) and create
- /api/jobs/<id>                     - detail, update
- /api/jobs/<id>/status              - status transition
- /api/jobs/<id>/invoice             - raise an invoice (net_15 / net_30)
- /api/jobs/<id>/notes               - list and add notes
- /api/jobs/<id>/photos              - list and upload photos
- /api/jobs/<id>/photos/<photo_id>   - delete a photo
- /api/jobs/<id>/time                - tracked time
- /api/jobs/<id>/time/start|stop     - timer control
"""

import logging
from flask import Blueprint, request, jsonify, current_app

from app.utils import get_json_body, ensure_valid
from auth import login_required, current_user_id
from database import get_db_session
from services.errors import ServiceError
from services.invoice_repository import InvoiceRepository
from services.job_repository import JobRepository
from services.photo_storage import PhotoStorage
from services.workflow import WorkflowService
from validators import validate_job_payload, validate_image_upload

logger = logging.getLogger(__name__)

jobs_bp = Blueprint('jobs_bp', __name__)


def get_photo_storage():
    return PhotoStorage(
        current_app.config['UPLOAD_FOLDER'],
        current_app.config.get('PHOTO_URL_PREFIX', '/uploads')
    )


@jobs_bp.route('/api/jobs', methods=['GET'])
@login_required
def list_jobs():
    with get_db_session() as db:
        jobs = JobRepository(db, current_user_id()).list_jobs(
            status=request.args.get('status'),
            search=request.args.get('search')
        )
    return jsonify({'success': True, 'jobs': jobs})


@jobs_bp.route('/api/jobs', methods=['POST'])
@login_required
def create_job():
    data = get_json_body()
    ensure_valid(validate_job_payload(data))

    with get_db_session() as db:
        job = JobRepository(db, current_user_id()).create_job(data)
    return jsonify({'success': True, 'job': job}), 201


@jobs_bp.route('/api/jobs/<job_id>', methods=['GET'])
@login_required
def get_job(job_id):
    with get_db_session() as db:
        job = JobRepository(db, current_user_id()).get_job(job_id)
    return jsonify({'success': True, 'job': job})


@jobs_bp.route('/api/jobs/<job_id>', methods=['PUT'])
@login_required
def update_job(job_id):
    data = get_json_body()
    ensure_valid(validate_job_payload(data, partial=True))

    with get_db_session() as db:
        job = JobRepository(db, current_user_id()).update_job(job_id, data)
    return jsonify({'success': True, 'job': job})


@jobs_bp.route('/api/jobs/<job_id>/status', methods=['PUT', 'POST'])
@login_required
def update_job_status(job_id):
    """Move a job through its lifecycle; completing it raises a draft invoice"""
    data = get_json_body()
    if not data.get('status'):
        raise ServiceError("status is required")

    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).update_job_status(
            job_id, data['status'], scheduled_date=data.get('scheduled_date')
        )
    return jsonify({'success': True, **result})


@jobs_bp.route('/api/jobs/<job_id>/invoice', methods=['POST'])
@login_required
def create_invoice(job_id):
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        invoice = InvoiceRepository(db, current_user_id()).create_from_job(
            job_id,
            payment_terms=data.get('payment_terms', 'net_30'),
            notes=data.get('notes')
        )
    return jsonify({'success': True, 'invoice': invoice}), 201


# ============================================================================
# NOTES
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/notes', methods=['GET'])
@login_required
def list_notes(job_id):
    with get_db_session() as db:
        notes = JobRepository(db, current_user_id()).list_notes(job_id)
    return jsonify({'success': True, 'notes': notes})


@jobs_bp.route('/api/jobs/<job_id>/notes', methods=['POST'])
@login_required
def add_note(job_id):
    data = get_json_body()
    with get_db_session() as db:
        note = JobRepository(db, current_user_id()).add_note(job_id, data.get('content'))
    return jsonify({'success': True, 'note': note}), 201


# ============================================================================
# PHOTOS
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/photos', methods=['GET'])
@login_required
def list_photos(job_id):
    with get_db_session() as db:
        photos = JobRepository(db, current_user_id()).list_photos(job_id)
    return jsonify({'success': True, 'photos': photos})


@jobs_bp.route('/api/jobs/<job_id>/photos', methods=['POST'])
@login_required
def upload_photo(job_id):
    """Upload a before/during/after photo (multipart field 'photo')"""
    file = request.files.get('photo')
    is_valid, error, filename = validate_image_upload(file)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    storage = get_photo_storage()
    with get_db_session() as db:
        photo = JobRepository(db, current_user_id()).add_photo(
            job_id, storage, file, filename,
            photo_type=request.form.get('photo_type', 'during')
        )
    return jsonify({'success': True, 'photo': photo}), 201


@jobs_bp.route('/api/jobs/<job_id>/photos/<photo_id>', methods=['DELETE'])
@login_required
def delete_photo(job_id, photo_id):
    with get_db_session() as db:
        JobRepository(db, current_user_id()).delete_photo(job_id, photo_id, get_photo_storage())
    return jsonify({'success': True})


# ============================================================================
# TIME TRACKING
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/time', methods=['GET'])
@login_required
def get_time_entries(job_id):
    with get_db_session() as db:
        result = JobRepository(db, current_user_id()).get_time_entries(job_id)
    return jsonify({'success': True, **result})


@jobs_bp.route('/api/jobs/<job_id>/time/start', methods=['POST'])
@login_required
def start_timer(job_id):
    with get_db_session() as db:
        entry = JobRepository(db, current_user_id()).start_timer(job_id)
    return jsonify({'success': True, 'entry': entry}), 201


@jobs_bp.route('/api/jobs/<job_id>/time/stop', methods=['POST'])
@login_required
def stop_timer(job_id):
    with get_db_session() as db:
        entry = JobRepository(db, current_user_id()).stop_timer(job_id)
    return jsonify({'success': True, 'entry': entry})
