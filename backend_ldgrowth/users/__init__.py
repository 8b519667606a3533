"""
Stores, team members and authentication.
"""
