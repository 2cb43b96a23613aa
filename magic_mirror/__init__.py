"""
Magic Mirror — Keep a fork's branches in sync with upstream pull requests.
"""
