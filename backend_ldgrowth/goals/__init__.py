"""
Team goals with KPI tracking.
"""
