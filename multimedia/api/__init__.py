"""
HTTP surface: FastAPI routes, dependencies and multipart ingestion.
"""
