# Routes package init
"""
RequestGraph Backend — API Routes Package
===========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - crud.py:    build_crud_router(), instantiated once per resource in
                  app.resources.RESOURCES and mounted at /api/<resource>
    - health.py:  GET /health (service health check)

Design Principle:
    Routes should be THIN — they handle HTTP concerns only:
    - Extract data from request (path, query params, body, If-Match)
    - Call the collection store or pagination service
    - Format the response with correct status code and headers
"""
