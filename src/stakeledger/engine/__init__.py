"""Accounting core: multiplier tables, pool accumulators, deposit books, rewards."""
