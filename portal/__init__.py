"""
Portal API - backend for the tournament website

Responsibilities:
- Contact form and tournament registration submissions
- Server-side entry fee and roster rules
- Admin notifications by email
- Token-protected admin dashboard (listing, status changes, stats)
"""
