"""Base abstract model shared by persistence records.

Provides ``BaseModel``: auto-increment primary key (project default
``BigAutoField``) plus ``created_at`` / ``updated_at`` bookkeeping.
``created_at`` is written once on insert; ``updated_at`` is refreshed on
every save, including partial saves with ``update_fields``.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """Abstract base with timestamp bookkeeping."""

    created_at = models.DateTimeField(auto_now_add=True, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)
