"""Folio Models.

ORM models (database tables):
    from folio.models.orm import Attachment, Document

Pydantic contracts (API request/response):
    from folio.models.contracts.attachment import AttachmentCreate

Enums:
    from folio.models.enums import AttachmentPreset
"""
