"""
LawDesk Backend - Legal Practice Management API
===============================================

A FastAPI service for:
1. User registration, login and role-based access control
2. Case, client, appointment and team-member records
3. Case-scoped document storage with tag metadata
4. Case argument extraction and media tools via external AI services
"""

__version__ = "1.0.0"
