"""
Core utilities shared by every domain: exceptions, list editing, time helpers.
"""
