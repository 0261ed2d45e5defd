"""End-to-end harness and journeys for team management."""
