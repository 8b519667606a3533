"""
Store overview counters.
"""
