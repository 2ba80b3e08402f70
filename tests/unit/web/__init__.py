"""Unit tests for OrderFlow web route modules.

Each route module has a corresponding test file. Routers are mounted on a
bare FastAPI app with the domain error handlers registered, ``get_db`` is
overridden with a mock session and the service functions are patched in
the route module.
"""
