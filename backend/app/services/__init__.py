# Services package init
"""
RequestGraph Backend — Services Layer
=======================================

What:  Logic that sits above the storage layer but below HTTP.

Service Inventory:
    - pagination.py:        filtered, windowed listing + pagination headers
    - collection_admin.py:  idempotent collection setup and teardown

Single-document CRUD needs no service: routes call CollectionStore directly.
"""
