# Routes package init
"""
StoreFinder Backend — Routes Package
====================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles a specific resource or action.

Route Inventory:
    - stores.py:   store pages (list, add/edit, store page, tags, hearts, top)
                   and POST /stores/{id}/heart
    - api.py:      GET  /api/search, GET /api/stores/near,
                   POST /api/stores/{id}/heart (alias of the stores.py route)
    - reviews.py:  POST /reviews/{store_id}
    - uploads.py:  GET  /uploads/{filename}
    - health.py:   GET  /health
    - redirects.py: redirect-with-notice helper for the form handlers

Design Principle:
    Routes are thin. They extract data from the request, call a service,
    and shape the response (status code, headers, redirect). Ownership,
    validation and persistence rules live in the services.
"""
