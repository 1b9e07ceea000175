"""
Domain events and their dispatcher.
"""
