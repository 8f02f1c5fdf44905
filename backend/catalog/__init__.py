"""Bookable catalog: venues, studios, cuisines with their dishes, decorations."""
