"""Object store backends."""
