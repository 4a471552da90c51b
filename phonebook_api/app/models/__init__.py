"""
Record rules.

Models describe what a valid phonebook entry is, independent of how
it is stored or transported.
"""
