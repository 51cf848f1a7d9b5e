"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Account:
- auth_routes.py : Sign-up, login/logout, session, password reset (/api/auth/*)
- profile.py     : Business profile settings (/api/profile)

Operations:
- customers.py   : Customers and the free-tier limit (/api/customers/*)
- catalog.py     : Priced service catalogue (/api/services/*)
- quotes.py      : Quotes, send/approve/reject, PDF (/api/quotes/*)
- jobs.py        : Jobs, status, notes, photos, time tracking (/api/jobs/*)
- invoices.py    : Invoices, manual payments, status, PDF (/api/invoices/*)

Money & Reporting:
- payments.py    : Stripe payment links, webhook, public pay pages
- dashboard.py   : Stats and activity feed (/api/dashboard/*)

Health and readiness endpoints live in health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
