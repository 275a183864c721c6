"""HTTP configuration constants for storage clients."""

# Per-request inactivity limit, applied by both transports.
DEFAULT_TIMEOUT = 300.0
# Overall bound on one round-trip. Only AsyncTransport enforces it.
DEFAULT_RESOURCE_TIMEOUT = 1800.0


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_RESOURCE_TIMEOUT"]
