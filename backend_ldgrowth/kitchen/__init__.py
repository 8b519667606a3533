"""
Kitchen operations: waste tracking.
"""
