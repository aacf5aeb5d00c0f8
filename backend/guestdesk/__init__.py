"""GuestDesk - staff assignment and request lifecycle service"""
