"""RouterOS device access: API client, command catalogue, per-device collector."""
