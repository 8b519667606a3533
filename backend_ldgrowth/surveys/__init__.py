"""
Anonymous team surveys: question builder, lifecycle, token responses,
analytics and schedule automation.
"""
