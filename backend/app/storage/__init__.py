# Storage package init
"""
RequestGraph Backend — Storage Layer
======================================

What:  The document/edge store realised on async SQLAlchemy.
Why:   Routes and services talk to CollectionStore and never see SQL,
       driver errors, or table layout.

Module Inventory:
    - collection_store.py: CollectionStore (CRUD + listing primitives)
    - documents.py:        key/handle validation, patch merge, row → entity
    - errors.py:           storage exception → FailureKind translation
"""
