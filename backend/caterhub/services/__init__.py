# Services package init
"""
CaterHub Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP; services handle catalog rules and tenancy.
How:   Services receive the request's AsyncSession and the caller's id,
       apply business rules, and return response schemas.

Service Inventory:
    - AuthService:         signup, login, current user (built per app with its TokenService)
    - DishService:         dish CRUD with lookup reference checks and the delete guard
    - PackageService:      package CRUD, item set replacement on update
    - PackageItemService:  package item CRUD and all-or-nothing link-batch
    - MetadataService:     lookup table listings
    - DashboardService:    per-caterer counts and financial summary
    - ImageStorage:        multipart image validation and local storage
"""
