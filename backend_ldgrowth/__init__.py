"""
Backend LD Growth - team development backend for restaurant stores.

Serves the REST API behind the store dashboards: team surveys, training
plans, documentation records, leadership development, goals, kitchen
waste and evaluation templates. A background loop automates recurring
survey schedules.
"""

__version__ = "0.1.0"
