"""
Interfaces module - User-facing interfaces for Notes Tutor.

This module provides:
1. CLI interface for interactive study sessions
2. JSON web API using FastAPI
"""
