"""Application services: ingestion, query orchestration, chat state and escalation."""
