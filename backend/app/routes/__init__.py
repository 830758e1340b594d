"""
BookBrief Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:       /auth/signup, /auth/login, /auth/me, /auth/users
    - books.py:      /books/upload, /books, /books/{id}
    - summaries.py:  /books/{id}/summary[/regenerate], /summaries[/{id}]
    - notes.py:      /summaries/{id}/notes, /notes/{id}
    - health.py:     /health

Routes stay thin: read the request, call one service method, shape the
response. Ownership checks and status transitions live in the services.
"""
