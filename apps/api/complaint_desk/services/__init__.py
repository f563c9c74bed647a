"""Service layer. Routers call these; these talk to the database."""
