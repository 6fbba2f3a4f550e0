"""Payment ledger: payments, surcharges and credit movements between cycles."""
