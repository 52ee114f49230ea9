"""Security tests for the documents API

This module contains security-focused tests including:
- Authentication bypass attempts
- Cross-organization access and org ID injection
"""
