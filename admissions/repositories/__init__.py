"""
Repository functions. Every function takes the unit-of-work session as its
first argument and never commits; transaction control belongs to the caller.
"""
