"""Personal task tracker with priority-driven reminder escalation."""
