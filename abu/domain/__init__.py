"""Domain model and pure report logic (query building, reduction, ranking)."""
