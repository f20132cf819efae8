"""Business logic: ingestion, retrieval and conversation orchestration."""
