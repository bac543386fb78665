"""Canon extraction, locking and drift detection."""
