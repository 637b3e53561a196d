"""
Runtime process introspection.
"""
