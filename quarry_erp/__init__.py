# quarry_erp/__init__.py
"""
Quarry ERP sales and reporting API.

    uvicorn quarry_erp:app
"""

from .main import app

__all__ = ["app"]
