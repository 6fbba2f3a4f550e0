"""
Subscriptions package - customer subscriptions and the plans they follow.

Read-only from the ledger's point of view: plans define the cycle price and
the per-product entitlements copied into every new cycle.
"""
