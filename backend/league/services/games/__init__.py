"""Game domain services: scheduling, live scoring and its state checks.

Routes authenticate and parse input, then call into these modules with an
explicit caller context; nothing here reads ``current_user``.
"""
