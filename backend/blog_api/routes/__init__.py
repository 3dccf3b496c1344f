# Routes package init
"""
Blog API — API Routes Package
==============================

Route Inventory:
    - posts.py:   GET    /posts              (list all posts)
                  GET    /posts/{id}         (single post)
                  POST   /posts              (create)
                  PUT    /posts/{id}         (partial update)
                  DELETE /posts/{id}         (idempotent delete)
    - health.py:  GET    /health             (service health check)

Routes stay thin: extract the request data, call PostService, choose the
status code. Business rules live in the services package.
"""
