from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_certificate_service, get_current_user, get_page
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import (
    CertificateIssueRequest,
    TemplateUpsertRequest,
    certificate_out,
    set_fields,
)
from academy.components.certificates import CertificateService
from academy.domain.entities import CertificateTemplate, User
from academy.domain.pagination import Page

router = APIRouter()


def template_out(template: CertificateTemplate) -> dict:
    return template.model_dump(mode="json")


@router.get("/verify/{certificate_no}")
def verify_certificate(
    certificate_no: str,
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    """Public verification by certificate number."""
    result = service.verify(certificate_no.strip().upper())
    if result is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "success": False,
                "message": "Certificate not found",
                "data": {"valid": False, "certificate_no": certificate_no},
            },
        )
    return ok(result.as_dict(), result.message)


@router.get("/mine")
def my_certificates(
    current_user: User = Depends(get_current_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return ok([certificate_out(c) for c in service.mine(current_user)])


@router.get("/{cert_id}/download")
def download_certificate(
    cert_id: UUID,
    current_user: User = Depends(get_current_user),
    service: CertificateService = Depends(get_certificate_service),
) -> Response:
    file, errors = service.download(cert_id, current_user)
    raise_for_errors(errors)
    assert file is not None
    return Response(
        content=file.data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file.filename}"'},
    )


# --- Admin ---


@router.get("/admin/all")
def admin_list_certificates(
    item_type: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    certs, total = service.list_certificates(
        item_type.upper() if item_type else None,
        status_filter.upper() if status_filter else None,
        search,
        page.offset,
        page.limit,
    )
    return paged([certificate_out(c) for c in certs], total, page)


@router.get("/admin/stats")
def admin_stats(
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return ok(service.stats())


@router.post("/admin/issue")
def admin_issue(
    req: CertificateIssueRequest,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    cert, errors = service.issue(req.user_id, req.item_type.strip().upper(), req.reference_id)
    raise_for_errors(errors)
    assert cert is not None
    return ok(certificate_out(cert), "Certificate issued", status.HTTP_201_CREATED)


@router.post("/admin/process-webinars")
def admin_process_webinars(
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    issued = service.process_webinar_completions()
    return ok({"issued": issued}, f"{issued} webinar certificate(s) issued")


@router.get("/admin/templates")
def list_templates(
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return ok([template_out(t) for t in service.list_templates()])


@router.get("/admin/templates/{item_type}")
def get_template(
    item_type: str,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return ok(template_out(service.get_template(item_type.upper())))


@router.put("/admin/templates/{item_type}")
def upsert_template(
    item_type: str,
    req: TemplateUpsertRequest,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    template, errors = service.upsert_template(item_type.upper(), set_fields(req))
    raise_for_errors(errors)
    assert template is not None
    return ok(template_out(template), "Template saved")


@router.delete("/admin/templates/{item_type}")
def delete_template(
    item_type: str,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    raise_for_errors(service.delete_template(item_type.upper()))
    return ok(None, "Template reset to defaults")


@router.get("/admin/{cert_id}")
def admin_get_certificate(
    cert_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    cert = service.get(cert_id)
    if not cert:
        raise not_found("Certificate not found")
    return ok(certificate_out(cert))


def _mutation(result: tuple, message: str) -> JSONResponse:
    cert, errors = result
    raise_for_errors(errors)
    assert cert is not None
    return ok(certificate_out(cert), message)


@router.patch("/admin/{cert_id}/revoke")
def revoke_certificate(
    cert_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return _mutation(service.revoke(cert_id), "Certificate revoked")


@router.patch("/admin/{cert_id}/restore")
def restore_certificate(
    cert_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return _mutation(service.restore(cert_id), "Certificate restored")


@router.post("/admin/{cert_id}/regenerate")
def regenerate_certificate(
    cert_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    return _mutation(service.regenerate(cert_id), "Certificate regenerated")


@router.delete("/admin/{cert_id}")
def delete_certificate(
    cert_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CertificateService = Depends(get_certificate_service),
) -> JSONResponse:
    raise_for_errors(service.delete(cert_id))
    return ok(None, "Certificate deleted")
