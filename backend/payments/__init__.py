"""Checkout sessions, payment reconciliation and the processor webhook."""
