"""
In-app notifications with optional webhook fan-out.
"""
