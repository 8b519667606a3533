"""
Leadership growth: situational assessment, recommendations, activity
forms and development-plan enrollments.
"""
