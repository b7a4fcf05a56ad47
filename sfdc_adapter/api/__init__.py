"""
sfdc_adapter.api - Optional REST API Gateway
============================================

This module provides an optional FastAPI-based REST gateway exposing a
managed Salesforce connection over HTTP.

Usage
-----
>>> from sfdc_adapter.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn sfdc_adapter.api:app

Or run directly:
>>> python -m sfdc_adapter.api

"""

from pathlib import Path

from dotenv import load_dotenv

# Load .env before the gateway reads its configuration
env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)

from sfdc_adapter.api.gateway import create_app, SalesforceGateway

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "SalesforceGateway",
    "app",
]
