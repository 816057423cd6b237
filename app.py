# app.py
"""
Root entrypoint so the service starts from a checkout:

    uvicorn app:app --reload

Settings come from QUARRY_* environment variables or a .env file.
"""

from quarry_erp.main import app  # noqa: F401
