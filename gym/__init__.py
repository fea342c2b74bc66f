"""gym/ -- Members, packages, check-ins and payments for GymDesk.

Layer rule: gym/ may import from core/ and auth/ (user validation needs the
Role/UserStatus enums and password hashing). It never imports from api/.
"""
