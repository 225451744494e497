"""
Authentication module for the Spark Therapy API.

This module provides:
- Self-registration for parents, therapists and (with a shared secret) admins
- Login with per-account lockout
- JWT access tokens and rotating refresh tokens
- Request gates for roles, capabilities and record ownership
"""
