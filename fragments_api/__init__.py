"""
fragments-api Application Package

Directory Structure:
├── routers/           # FastAPI route handlers
├── schemas/           # Pydantic models for API requests/responses
│   └── api_schemas.py # HTTP request/response structures
├── domain/            # Errors, entities, events, identifier strategies
├── application/       # Domain event handlers (audit logging)
├── services/          # Business logic services
│   ├── conversion/    # Engines, conversion cache slot, converters
│   └── fragments_app_service.py  # Upload → convert → store pipeline
├── storage/           # Artifact storage implementations
│   ├── filesystem.py  # Local filesystem storage
│   └── s3.py          # S3 storage
└── config.py          # Application configuration

An uploaded model is handed to the configured conversion engine; the derived
fragments artifact is stored as ``{id}.frag`` next to an optional ``{id}.json``
metadata sidecar and served back by its generated identifier.
"""
