"""
Job Repository - Jobs, their notes, photos and time tracking.

Status changes go through services.workflow. Jobs created from an approved
quote are also made there.
"""

import logging
from datetime import datetime
from typing import List, Dict

from sqlalchemy import or_

from database.models import Job, JobService, JobNote, JobPhoto, TimeEntry, Customer, PHOTO_TYPES
from services.base_repository import BaseRepository, line_items_total
from services.errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def format_duration(total_seconds: int) -> str:
    """Format seconds as '{h}h {m}m'."""
    hours, remainder = divmod(int(total_seconds), 3600)
    return f"{hours}h {remainder // 60}m"


class JobRepository(BaseRepository):
    """Repository for jobs and their field records."""

    def get_job_record(self, job_id: str) -> Job:
        return self._get_owned(Job, job_id, 'Job')

    # =========================================================================
    # JOBS
    # =========================================================================

    def list_jobs(self, status: str = None, search: str = None) -> List[Dict]:
        """List jobs by scheduled date (unscheduled last), then newest first."""
        query = self.session.query(Job).join(Customer, Job.customer_id == Customer.id).filter(
            Job.user_id == self.user_id
        )
        if status:
            query = query.filter(Job.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Job.title.ilike(pattern),
                Customer.name.ilike(pattern)
            ))
        jobs = query.order_by(
            Job.scheduled_date.is_(None),
            Job.scheduled_date,
            Job.created_at.desc()
        ).all()
        return [j.to_dict() for j in jobs]

    def get_job(self, job_id: str) -> Dict:
        """Job detail including photos, notes and tracked time."""
        job = self.get_job_record(job_id)
        data = job.to_dict()
        data['photos'] = [p.to_dict() for p in job.photos]
        data['notes'] = [n.to_dict() for n in job.job_notes]
        data['time_entries'] = [t.to_dict() for t in job.time_entries]
        data.update(self._time_totals(job))
        data['invoices'] = [i.to_dict() for i in job.invoices]
        data['history'] = self.events.get_entity_history('job', job.id)
        return data

    def create_job(self, data: Dict) -> Dict:
        """Create a standalone job; a scheduled date makes it 'scheduled'."""
        customer = self._get_customer(data.get('customer_id'))
        scheduled_date = self._parse_datetime(data.get('scheduled_date'))
        items = data.get('services') or []

        job = Job(
            user_id=self.user_id,
            customer=customer,
            title=data['title'].strip(),
            description=data.get('description'),
            status='scheduled' if scheduled_date else 'draft',
            payment_status='unpaid',
            scheduled_date=scheduled_date,
            total_amount=line_items_total(items),
            services=[
                JobService(
                    service_name=item['service_name'].strip(),
                    price=float(item['price']),
                    quantity=int(item.get('quantity') or 1),
                    notes=item.get('notes')
                )
                for item in items
            ]
        )
        self.session.add(job)
        self.session.flush()

        self.events.log(
            entity_type='job',
            entity_id=job.id,
            event_type='CREATED',
            description=f"Job '{job.title}' created for {customer.name}",
            metadata={'customer_id': customer.id, 'status': job.status}
        )
        logger.info(f"Created job: {job.id}")
        return job.to_dict()

    def update_job(self, job_id: str, data: Dict) -> Dict:
        job = self.get_job_record(job_id)
        if 'title' in data:
            job.title = data['title'].strip()
        if 'description' in data:
            job.description = data['description']
        if 'scheduled_date' in data:
            scheduled_date = self._parse_datetime(data['scheduled_date'])
            if scheduled_date is None and job.status == 'scheduled':
                raise ConflictError("A scheduled job must keep its scheduled date")
            job.scheduled_date = scheduled_date
        job.updated_at = datetime.utcnow()
        self.session.flush()
        self.events.log('job', job.id, 'UPDATED', f"Job '{job.title}' was updated")
        return job.to_dict()

    # =========================================================================
    # NOTES
    # =========================================================================

    def list_notes(self, job_id: str) -> List[Dict]:
        job = self.get_job_record(job_id)
        return [n.to_dict() for n in job.job_notes]

    def add_note(self, job_id: str, content: str) -> Dict:
        job = self.get_job_record(job_id)
        content = (content or '').strip()
        if not content:
            raise ServiceError("Note content is required")

        note = JobNote(job_id=job.id, user_id=self.user_id, content=content)
        self.session.add(note)
        self.session.flush()
        self.events.log('job', job.id, 'NOTE_ADDED', f"Note added to job '{job.title}'")
        return note.to_dict()

    # =========================================================================
    # PHOTOS
    # =========================================================================

    def list_photos(self, job_id: str) -> List[Dict]:
        job = self.get_job_record(job_id)
        return [p.to_dict() for p in job.photos]

    def add_photo(self, job_id: str, storage, file_storage, filename: str,
                  photo_type: str = 'during') -> Dict:
        """
        Store an uploaded photo and attach it to the job.

        Args:
            storage: PhotoStorage writing to the upload folder
            file_storage: werkzeug FileStorage from the request
            filename: Sanitised filename
            photo_type: before, during or after
        """
        job = self.get_job_record(job_id)
        if photo_type not in PHOTO_TYPES:
            raise ServiceError(f"photo_type must be one of: {', '.join(PHOTO_TYPES)}")

        photo_url, storage_path = storage.save(job.id, file_storage, filename)
        photo = JobPhoto(
            job_id=job.id,
            photo_url=photo_url,
            storage_path=storage_path,
            photo_type=photo_type
        )
        self.session.add(photo)
        self.session.flush()
        self.events.log('job', job.id, 'PHOTO_ADDED', f"{photo_type.capitalize()} photo added",
                        metadata={'photo_id': photo.id, 'photo_type': photo_type})
        return photo.to_dict()

    def delete_photo(self, job_id: str, photo_id: str, storage) -> bool:
        job = self.get_job_record(job_id)
        photo = self.session.query(JobPhoto).filter(
            JobPhoto.id == photo_id,
            JobPhoto.job_id == job.id
        ).first()
        if not photo:
            raise NotFoundError("Photo not found")

        storage.delete(photo.storage_path)
        self.session.delete(photo)
        return True

    # =========================================================================
    # TIME TRACKING
    # =========================================================================

    def _open_entry(self, job: Job):
        return self.session.query(TimeEntry).filter(
            TimeEntry.job_id == job.id,
            TimeEntry.end_time.is_(None)
        ).first()

    @staticmethod
    def _time_totals(job: Job) -> Dict:
        total = sum(t.duration_seconds for t in job.time_entries if t.end_time)
        return {
            'total_seconds': total,
            'total_time': format_duration(total),
            'timer_running': any(t.end_time is None for t in job.time_entries),
        }

    def get_time_entries(self, job_id: str) -> Dict:
        job = self.get_job_record(job_id)
        data = {'entries': [t.to_dict() for t in job.time_entries]}
        data.update(self._time_totals(job))
        return data

    def start_timer(self, job_id: str) -> Dict:
        """
        Open a time entry.

        Raises:
            ConflictError: the job already has a running entry
        """
        job = self.get_job_record(job_id)
        if self._open_entry(job):
            raise ConflictError("Timer is already running for this job")

        entry = TimeEntry(job_id=job.id, user_id=self.user_id, start_time=datetime.utcnow())
        self.session.add(entry)
        self.session.flush()
        return entry.to_dict()

    def stop_timer(self, job_id: str) -> Dict:
        job = self.get_job_record(job_id)
        entry = self._open_entry(job)
        if not entry:
            raise ConflictError("No timer is running for this job")

        entry.end_time = datetime.utcnow()
        self.session.flush()
        return entry.to_dict()
