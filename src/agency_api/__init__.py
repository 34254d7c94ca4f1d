"""REST API over the agents, company, customer and orders tables."""
