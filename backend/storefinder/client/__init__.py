# Client package init
"""
StoreFinder — Interaction Clients
=================================

Headless counterparts of the page scripts, driven over HTTP with httpx.
Each keeps the UI state the page would show (visibility, markup, CSS
classes, counters) so it can be inspected or rendered by any front end.

    - typeahead.TypeAhead:   live search box over GET /api/search
    - heart.HeartButton:     heart toggle over POST /stores/{id}/heart

Both take an httpx.AsyncClient whose base_url points at the backend and
which carries the X-User-ID header when the requester is known.
"""
