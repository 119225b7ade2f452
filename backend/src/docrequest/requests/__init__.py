"""Operator-facing request lifecycle: creation, review, commit, expiration"""
