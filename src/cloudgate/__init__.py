"""CloudGate - cloud controller deployments API with audit trail and role-based visibility."""

__version__ = "0.1.0"
