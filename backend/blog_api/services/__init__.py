# Services package init
"""
Blog API — Services Layer
==========================

What:  Business logic between routes (HTTP) and database (persistence).

Service Inventory:
    - PostService: list / get / create / partial update / delete of posts
"""
