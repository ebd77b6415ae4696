"""Infrastructure layer - settings, database, catalog seeding, logging."""
