# Services package init
"""
StoreFinder Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP, services handle business rules.

Service Inventory:
    - StoreRepository: Store validation, slugs, aggregations, search queries
    - PhotoService: Photo type filter, resize, storage and cleanup
    - StoreService: Store listing, create/edit with ownership, tags, search,
      map, hearts and rankings
    - ReviewService: Review validation and persistence
"""
