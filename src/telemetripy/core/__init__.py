"""Domain models, ports and the lock-guarded in-memory components."""
