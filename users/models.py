import hashlib
import logging

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

logger = logging.getLogger(__name__)


def hash_phone_number(phone_number):
    """Hash the digits of a phone number into the canonical uniqueness key."""
    digits = ''.join(ch for ch in (phone_number or '') if ch.isdigit())
    if not digits:
        return None
    return hashlib.sha256(digits.encode('utf-8')).hexdigest()


class SoftDeleteManager(models.Manager):
    """Manager that filters out soft-deleted objects by default"""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)

    def with_deleted(self):
        """Return queryset including soft-deleted objects"""
        return super().get_queryset()


class SoftDeleteModel(models.Model):
    """Base model with soft delete functionality"""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, help_text="Soft delete timestamp")

    objects = SoftDeleteManager()
    all_objects = models.Manager()  # Access to all objects including deleted

    class Meta:
        abstract = True

    def soft_delete(self):
        """Soft delete the object"""
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])

    def restore(self):
        """Restore a soft-deleted object"""
        self.deleted_at = None
        self.save(update_fields=['deleted_at'])

    @property
    def is_deleted(self):
        """Check if object is soft-deleted"""
        return self.deleted_at is not None


class User(AbstractUser, SoftDeleteModel):
    phone_number = models.CharField(max_length=20, blank=True, null=True, help_text="User's phone number")
    # sha256 of the phone digits; its presence is the verified unique-identity signal
    phone_number_hash = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    eth_wallet = models.CharField(
        max_length=42,
        blank=True,
        default='',
        help_text="Currently linked on-chain wallet address",
    )
    is_banned = models.BooleanField(default=False, help_text="Banned users are excluded from rewards")
    groups = models.ManyToManyField(
        'auth.Group',
        verbose_name='groups',
        blank=True,
        help_text='The groups this user belongs to.',
        related_name='custom_user_set',
        related_query_name='custom_user',
    )
    user_permissions = models.ManyToManyField(
        'auth.Permission',
        verbose_name='user permissions',
        blank=True,
        help_text='Specific permissions for this user.',
        related_name='custom_user_set',
        related_query_name='custom_user',
    )

    def __str__(self):
        return self.username or self.email or str(self.pk)

    def save(self, *args, **kwargs):
        # Auto-maintain the phone hash used for uniqueness
        self.phone_number_hash = hash_phone_number(self.phone_number)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'phone_number' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'phone_number_hash'}
        super().save(*args, **kwargs)

    @property
    def is_phone_verified(self):
        """Check if user has a hashed phone number stored"""
        return bool(self.phone_number_hash)

    @property
    def should_fail_rewards(self):
        """Users that are banned, deactivated or deleted never receive rewards."""
        return self.is_banned or not self.is_active or self.is_deleted
