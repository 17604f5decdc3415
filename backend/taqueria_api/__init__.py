"""
Taquería POS REST API.
"""
