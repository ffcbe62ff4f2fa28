"""
Certificates component - Completion certificates and their templates.
"""

from .component import (
    CertificateService,
    build_layout,
    default_template,
    validate_template_updates,
)
from .models import TYPE_LABELS, CertificateError, CertificateFile, CertificateVerification
from .ports import (
    CertificateRepoPort,
    EnrolleesPort,
    ItemLookupPort,
    TemplateRepoPort,
    UserLookupPort,
)

__all__ = [
    "CertificateService",
    "build_layout",
    "default_template",
    "validate_template_updates",
    "TYPE_LABELS",
    "CertificateError",
    "CertificateFile",
    "CertificateVerification",
    "CertificateRepoPort",
    "EnrolleesPort",
    "ItemLookupPort",
    "TemplateRepoPort",
    "UserLookupPort",
]
