"""
Wedding client core: real-time Firestore subscriptions, REST access and
two-tier caching for the host dashboard and guest pages.
"""

__version__ = "1.0.0"
