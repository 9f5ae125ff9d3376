"""
Database models for the home-care portal.

Only accounts and the audit trail live in the database.  The pricing
catalog is persisted as a JSON document by
:mod:`portal.services.pricing_store`.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model with a portal role.

    Roles mirror the portals of the front-end: administrators and
    reviewers manage the back office, caregivers and patients use their
    own dashboards.  ``super`` is reserved for platform operators.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('reviewer', 'Reviewer'),
        ('caregiver', 'Caregiver'),
        ('patient', 'Patient'),
        ('super', 'Super Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='patient', db_index=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    # Pricing ids are free-form strings, not integers.
    object_id = models.CharField(max_length=128, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='portal_audi_action_6b1f0c_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='portal_audi_object__9d2e4a_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.object_type}:{self.object_id}"
