"""
Background loops started by the API lifespan (or run standalone from tools).
"""
