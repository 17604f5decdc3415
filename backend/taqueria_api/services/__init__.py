"""
Services package.

- audit: audit log writers
- inventory: the single stock mutation path
- domain: business services used by the routers
"""
