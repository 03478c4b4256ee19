"""Backoffice post service."""

from postdesk.posts.services import (
    ActionResult,
    EditablePost,
    PostMetrics,
    PostService,
    prepare_form,
    to_form_values,
    validate_form,
)

__all__ = [
    "ActionResult",
    "EditablePost",
    "PostMetrics",
    "PostService",
    "prepare_form",
    "to_form_values",
    "validate_form",
]
