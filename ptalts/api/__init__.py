"""
PTAlts commerce API client.
"""
