"""
Server-sent events decoding and subscription.
"""
