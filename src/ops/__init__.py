"""
Operational helpers (logging).
"""
