"""Transactional email: job queue, dispatcher, templates and transports."""
