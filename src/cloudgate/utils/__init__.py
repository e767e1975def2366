"""CloudGate utility helpers."""
