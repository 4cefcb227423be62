"""Job model, error taxonomy and job orchestration."""
