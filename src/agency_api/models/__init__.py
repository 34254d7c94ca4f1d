"""
Table definitions for the four entities served by the API.

Importing this package registers every table on `Base.metadata`, which both
`create_tables()` and the schema registry depend on.

    from agency_api.models import Agent, Company, Customer, Order
"""

from .agent import Agent
from .company import Company
from .customer import Customer
from .order import Order

__all__ = [
    "Agent",
    "Company",
    "Customer",
    "Order",
]
