"""
Default service catalogue for TradeFlow.
Each business type a new operator picks at sign-up maps to a starter set of
priced services they can load into their catalogue.
"""

import logging

from database.models import Service

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = {
    'cleaning': [
        {'name': 'Regular House Cleaning', 'default_price': 100, 'description': 'Standard cleaning service for homes'},
        {'name': 'Deep Cleaning', 'default_price': 175, 'description': 'Thorough deep cleaning service'},
        {'name': 'Move In/Out Cleaning', 'default_price': 250, 'description': 'Complete cleaning for moving'},
        {'name': 'Window Cleaning', 'default_price': 75, 'description': 'Interior and exterior window cleaning'},
    ],
    'yard_work': [
        {'name': 'Lawn Mowing', 'default_price': 45, 'description': 'Regular lawn maintenance'},
        {'name': 'Hedge Trimming', 'default_price': 60, 'description': 'Shaping and trimming hedges'},
        {'name': 'Leaf Cleanup', 'default_price': 75, 'description': 'Removal of fallen leaves'},
        {'name': 'Garden Maintenance', 'default_price': 60, 'description': 'General garden upkeep'},
    ],
    'handyman': [
        {'name': 'Basic Repairs', 'default_price': 75, 'description': 'Minor home repairs'},
        {'name': 'Painting', 'default_price': 350, 'description': 'Interior/exterior painting'},
        {'name': 'Minor Plumbing', 'default_price': 100, 'description': 'Basic plumbing fixes'},
        {'name': 'Furniture Assembly', 'default_price': 60, 'description': 'Assembly of furniture items'},
    ],
    'laundry': [
        {'name': 'Wash & Fold', 'default_price': 20, 'description': 'Per load of laundry'},
        {'name': 'Pickup & Delivery', 'default_price': 25, 'description': 'Laundry pickup service'},
        {'name': 'Dry Cleaning', 'default_price': 20, 'description': 'Per garment'},
        {'name': 'Ironing Service', 'default_price': 20, 'description': 'Per item'},
    ],
}


def seed_default_services(session, user_id, service_types):
    """
    Add the starter services for ``service_types`` to a user's catalogue.
    Services whose name already exists in the catalogue are skipped.

    Returns:
        List of the Service rows that were created
    """
    existing = {
        name.lower() for (name,) in session.query(Service.name).filter(
            Service.user_id == user_id
        ).all()
    }

    created = []
    for service_type in service_types or []:
        for template in DEFAULT_SERVICES.get(service_type, []):
            if template['name'].lower() in existing:
                continue
            service = Service(
                user_id=user_id,
                name=template['name'],
                default_price=template['default_price'],
                description=template['description'],
                is_custom=False
            )
            session.add(service)
            created.append(service)
            existing.add(template['name'].lower())

    session.flush()
    logger.info(f"Seeded {len(created)} default services for user {user_id}")
    return created
