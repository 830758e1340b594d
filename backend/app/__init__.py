"""
BookBrief Backend — Application Package
=========================================

Layers, top to bottom:

    ┌─────────────────────────────────────┐
    │  routes/       HTTP in and out      │
    ├─────────────────────────────────────┤
    │  services/     workflows, rules     │
    ├─────────────────────────────────────┤
    │  models/ + schemas/   ORM, API I/O  │
    ├─────────────────────────────────────┤
    │  database.py   async sessions       │
    └─────────────────────────────────────┘

Routes never touch SQL; services never build HTTP responses.
"""

__version__ = "1.0.0"
