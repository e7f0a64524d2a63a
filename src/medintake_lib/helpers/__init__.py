"""
Helper utilities for MedIntake.

- auth: JWT validation and bearer token extraction
- readiness_probe: Kubernetes health checks
"""
