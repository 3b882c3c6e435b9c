"""auth/ -- Authentication and session-lifecycle core for authsvc.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. Configuration values are passed in
by the caller (api/main.py lifespan, main.py CLI).
api/ imports from auth/, not the other way around.
"""
