"""Infrastructure shared by every layer (telemetry)."""
