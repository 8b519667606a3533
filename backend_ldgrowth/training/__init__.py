"""
Training plan library, assignment and trainee progress.
"""
