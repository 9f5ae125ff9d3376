"""Portal application for the home-care services backend.

This package contains the account and audit models, the pricing
catalog services, serializers, views and route registrations that
back the admin and customer pricing pages.
"""
