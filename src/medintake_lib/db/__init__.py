"""
Storage clients for MedIntake.

- connection: SQLAlchemy engine and session management
- models/: ORM models for all tables
- crud/: CRUD operations per entity
- minio: Object storage client
"""
