# Routes package init
"""
CaterHub Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return envelopes.
How:   Each module handles one resource; all caterer routes sit behind
       the `require_caterer` dependency.

Route Inventory:
    - auth.py:           POST /auth/signup, /auth/login, /auth/logout; GET /auth/me
    - dishes.py:         /caterer/dishes[/{id}]
    - package_items.py:  /caterer/packages/items[/{id}]
    - packages.py:       /caterer/packages[/{id}], POST /caterer/packages/{id}/items/link
    - metadata.py:       GET /caterer/metadata/*
    - dashboard.py:      GET /caterer/dashboard
    - health.py:         GET /health
    - files.py:          GET /files/{path}  (stored images)
    - payload.py:        JSON / multipart body parsing shared by the write routes

Design Principle:
    Routes are THIN. They extract the caller, the body and the upload,
    call one service method, and wrap the result in an Envelope.
    Business rules and tenancy checks live in the services.
"""
