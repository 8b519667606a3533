"""
Employee documentation records, acknowledgments, follow-ups and PIPs.
"""
