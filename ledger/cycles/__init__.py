"""
Cycles package - billing periods of a subscription and their product entitlements.

QuotaService splits order quantities into what the current cycle covers and
what has to be charged as extra, and provisions cycles on demand.
"""
