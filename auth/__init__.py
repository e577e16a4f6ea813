"""auth/ -- Accounts, credentials and identity resolution for the reporting API.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/, academics/, or reports/.
api/ imports from auth/, not the other way around.
"""
