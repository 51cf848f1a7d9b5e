"""
Catalog Repository - The operator's list of priced services.
"""

import logging
from datetime import datetime
from typing import List, Dict

from database.models import Service, Profile
from database.seed import seed_default_services
from services.base_repository import BaseRepository, round_money

logger = logging.getLogger(__name__)


class CatalogRepository(BaseRepository):
    """CRUD over the services an operator offers."""

    def list_services(self) -> List[Dict]:
        services = self.session.query(Service).filter(
            Service.user_id == self.user_id
        ).order_by(Service.name).all()
        return [s.to_dict() for s in services]

    def get_service(self, service_id: str) -> Dict:
        return self._get_owned(Service, service_id, 'Service').to_dict()

    def create_service(self, data: Dict) -> Dict:
        service = Service(
            user_id=self.user_id,
            name=data['name'].strip(),
            default_price=round_money(data.get('default_price')),
            description=data.get('description'),
            is_custom=data.get('is_custom', True)
        )
        self.session.add(service)
        self.session.flush()
        self.events.log_create('service', service.id, f"Service '{service.name}' was added")
        return service.to_dict()

    def update_service(self, service_id: str, data: Dict) -> Dict:
        service = self._get_owned(Service, service_id, 'Service')
        if 'name' in data:
            service.name = data['name'].strip()
        if 'default_price' in data:
            service.default_price = round_money(data['default_price'])
        if 'description' in data:
            service.description = data['description']
        if 'is_custom' in data:
            service.is_custom = bool(data['is_custom'])
        service.updated_at = datetime.utcnow()
        self.session.flush()
        return service.to_dict()

    def delete_service(self, service_id: str) -> bool:
        # Line items keep their own name and price, so nothing else references a service
        service = self._get_owned(Service, service_id, 'Service')
        self.session.delete(service)
        logger.info(f"Deleted service: {service_id}")
        return True

    def populate_defaults(self) -> int:
        """
        Load the starter services for every business type on the profile.
        Existing names are skipped, so calling this again adds nothing.

        Returns:
            Number of services added
        """
        profile = self.session.query(Profile).filter(Profile.id == self.user_id).first()
        service_types = profile.service_types if profile else []
        created = seed_default_services(self.session, self.user_id, service_types)
        if created:
            self.events.log(
                entity_type='service',
                entity_id=None,
                event_type='CREATED',
                description=f"Added {len(created)} default services",
                metadata={'service_types': service_types}
            )
        return len(created)
