"""
Evaluation templates: ordered sections of graded criteria.
"""
