"""
Operator web interface.
"""
