"""auth/ -- Authentication and authorization package for GymDesk.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or gym/.
api/ and gym/ import from auth/, not the other way around.
"""
