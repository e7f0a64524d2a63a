"""
MedIntake Shared Library

This package contains the collaborator clients used by the MedIntake API:
- db/: Metadata store (PostgreSQL via SQLAlchemy) and object storage (MinIO)
- helpers/: Utility functions (auth, health probes)
"""

__version__ = "0.1.0"
