"""
Subscription cycle ledger.

Tracks what each billing cycle of a delivery subscription owes, the payments
and credits applied to it, and how much of each subscribed product is still
covered by the cycle's entitlement.
"""
