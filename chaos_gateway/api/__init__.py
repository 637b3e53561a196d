"""
HTTP routes and middleware for the gateway.
"""
