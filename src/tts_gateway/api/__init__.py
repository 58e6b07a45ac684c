"""
FastAPI REST API Layer for tts-gateway.

    - routes.py: /v1/tts, /v1/providers, /v1/audio/duration, /health, /metrics
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection
"""
