"""Service layer: embedder, ingestion, retrieval, versioning and the facade."""
