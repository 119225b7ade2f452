"""Security tests for DocRequest

This module contains security-focused tests including:
- Operator authentication bypass attempts
- Privilege escalation to administrator endpoints
- Token probing and SQL injection on the anonymous portal
- Disclosure of internal data through portal responses
"""
