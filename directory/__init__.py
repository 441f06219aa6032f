"""directory/ -- End-user profile directory: domain model, store, and import parsers.

Layer rule: directory/ does NOT import from api/ or auth/.
"""
